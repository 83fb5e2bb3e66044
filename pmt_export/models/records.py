from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Item names whose text value is exported as a JSON boolean.
BOOLEAN_ITEMS = ("released", "releaseStatus")
BOOLEAN_TRUE_VALUES = {"y", "yes", "true"}


class _MetadataRecord(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., min_length=1)

    @property
    def display_name(self) -> str:
        raise NotImplementedError

    def to_items(self) -> dict[str, Any]:
        """All fields keyed by item name, shape tag included."""
        return self.model_dump(by_alias=True, mode="json")

    def to_export_json(self) -> dict[str, Any]:
        """The record as written to the JSON export file."""
        data = self.model_dump(by_alias=True, mode="json", exclude={"form"})
        for name in BOOLEAN_ITEMS:
            if name in data:
                data[name] = str(data[name]).strip().lower() in BOOLEAN_TRUE_VALUES
        return data


class ProjectRecord(_MetadataRecord):
    form: Literal["project"] = "project"

    name: str = ""
    overview: str = ""
    details_text: str = Field("", alias="detailsText")
    details_body: str = Field("", alias="detailsBody")
    downloads: int = 0
    category: str = ""
    chefs: list[str] = Field(default_factory=list)
    cooks: list[str] = Field(default_factory=list)
    created: datetime
    latest_release_date: datetime = Field(..., alias="latestReleaseDate")
    last_modified: datetime = Field(..., alias="lastModified")
    source_control_url: str = Field("", alias="sourceControlUrl")
    source_url: str = Field("", alias="sourceUrl")
    source_path: str = Field("", alias="sourcePath")

    @property
    def display_name(self) -> str:
        return self.name


class ReleaseRecord(_MetadataRecord):
    form: Literal["release"] = "release"

    project_name: str = Field("", alias="projectName")
    version: str = ""
    release_date: datetime = Field(..., alias="releaseDate")
    description_text: str = Field("", alias="descriptionText")
    description_body: str = Field("", alias="descriptionBody")
    downloads: int = 0
    main_id: str = Field("", alias="mainId")
    release_status: str = Field("", alias="releaseStatus")
    released: str = ""
    chef: str = ""
    master_chefs: list[str] = Field(default_factory=list, alias="masterChefs")
    license_type: str = Field("", alias="licenseType")
    source_url: str = Field("", alias="sourceUrl")
    source_path: str = Field("", alias="sourcePath")

    @property
    def display_name(self) -> str:
        if self.version:
            return f"{self.project_name}.{self.version}"
        return self.project_name


NormalizedRecord = Union[ProjectRecord, ReleaseRecord]
