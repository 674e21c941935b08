from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from specref.services.crawl.base import CatalogEntry, DocumentStatus

PUBLISHER = "ISO/IEC"


class SpecRefRecord(BaseModel):
    """One value of the SpecRef snapshot object.

    Optional fields are None when they carry no information and are left out
    of the JSON entirely; flags are only ever written as ``true``.
    """

    model_config = ConfigDict(populate_by_name=True)

    href: str
    title: str
    status: DocumentStatus
    publisher: str = PUBLISHER
    iso_number: Optional[str] = Field(None, alias="isoNumber")
    is_superseded: Optional[bool] = Field(None, alias="isSuperseded")
    is_retired: Optional[bool] = Field(None, alias="isRetired")
    obsoleted_by: Optional[List[str]] = Field(None, alias="obsoletedBy")
    raw_date: Optional[str] = Field(None, alias="rawDate")

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "SpecRefRecord":
        return cls(
            href=entry.url,
            title=entry.title,
            status=entry.status,
            iso_number=entry.iso_number,
            is_superseded=entry.is_superseded or None,
            is_retired=entry.is_retired or None,
            obsoleted_by=[entry.obsoleted_by] if entry.obsoleted_by else None,
            raw_date=entry.raw_date,
        )

    def to_json_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        # False flags and empty lists are omitted the same way as absent values.
        return {k: v for k, v in data.items() if v is not False and v != []}
