import os
import sys
from datetime import datetime, timezone

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
pytest.importorskip("pydantic")

from pmt_export.extractors.pmt_extractor import SourceDocument
from pmt_export.mappers import map_record
from pmt_export.models import ProjectRecord, ReleaseRecord
from pmt_export.utils.errors import RecordMappingError, RichTextDecodeError
from pmt_export.utils.urls import encode_project_name, project_source_url

CREATED = datetime(2015, 1, 1, 10, tzinfo=timezone.utc)
MODIFIED = datetime(2020, 5, 1, 12, tzinfo=timezone.utc)


def doc(unid, **items):
    return SourceDocument(unid, items, created=CREATED, last_modified=MODIFIED)


def test_project_mapping():
    record = map_record(
        doc(
            "P1",
            Form="project",
            ProjectName="Demo",
            ProjectOverview="Overview",
            Details={"type": "composite", "value": "<b>Hi</b>"},
            DownloadsProject=5,
            MainCat="Tools",
            MasterChef=["Jane Doe"],
            ProjectCooks=["Ann", "Bob"],
            GithubProject="https://github.com/example/demo",
        ),
        "projects/pmt.nsf",
    )
    assert isinstance(record, ProjectRecord)
    assert record.id == "P1"
    assert record.name == "Demo"
    assert record.overview == "Overview"
    assert record.details_text == "Hi"
    assert "Content-Type: text/html" in record.details_body
    assert record.downloads == 5
    assert record.category == "Tools"
    assert record.chefs == ["Jane Doe"]
    assert record.cooks == ["Ann", "Bob"]
    assert record.source_control_url == "https://github.com/example/demo"
    assert record.source_url == "https://www.openntf.org/main.nsf/project.xsp?r=project/Demo"
    assert record.source_path == "projects/pmt.nsf"
    assert record.display_name == "Demo"


def test_project_date_fallbacks():
    record = map_record(doc("P1", Form="Project", ProjectName="Demo"), "pmt.nsf")
    assert record.created == CREATED
    assert record.latest_release_date == MODIFIED
    assert record.last_modified == MODIFIED
    assert record.details_text == ""
    assert record.details_body == ""
    assert record.downloads == 0


def test_project_dates_from_items():
    record = map_record(
        doc(
            "P1",
            Form="project",
            ProjectName="Demo",
            Entry_Date="2012-02-02T08:00:00+00:00",
            ReleaseDate="2019-09-09T09:00:00+00:00",
        ),
        "pmt.nsf",
    )
    assert record.created == datetime(2012, 2, 2, 8, tzinfo=timezone.utc)
    assert record.latest_release_date == datetime(2019, 9, 9, 9, tzinfo=timezone.utc)


def test_release_mapping():
    mime = (
        'Content-Type: multipart/alternative; boundary="B"\n\n'
        "--B\nContent-Type: text/plain\n\nplain\n"
        "--B\nContent-Type: text/html\n\n<p>Bug <i>fixes</i></p>\n"
        "--B--\n"
    )
    record = map_record(
        doc(
            "R1",
            Form="release",
            ProjectName="Demo",
            ReleaseNumber="1.0",
            WhatsNew={"type": "mime", "value": mime},
            DownloadsRelease="3",
            MainId="P1",
            ReleaseInCatalog="Yes",
            Status="n",
            Entry_Person="Jane Doe",
            MasterChef=["Jane Doe", "John Roe"],
            LicenseType="Apache 2.0",
        ),
        "pmt.nsf",
    )
    assert isinstance(record, ReleaseRecord)
    assert record.project_name == "Demo"
    assert record.version == "1.0"
    assert record.release_date == MODIFIED
    assert record.description_text == "Bug fixes"
    assert record.description_body == mime
    assert record.downloads == 3
    assert record.main_id == "P1"
    assert record.release_status == "Yes"
    assert record.released == "n"
    assert record.chef == "Jane Doe"
    assert record.master_chefs == ["Jane Doe", "John Roe"]
    assert record.license_type == "Apache 2.0"
    assert record.source_url.endswith("/project/Demo")
    assert record.display_name == "Demo.1.0"


def test_export_json_shape():
    release = map_record(
        doc("R1", Form="release", ProjectName="Demo", ReleaseInCatalog=" YES ", Status="maybe"),
        "pmt.nsf",
    )
    data = release.to_export_json()
    assert "form" not in data
    assert data["releaseStatus"] is True
    assert data["released"] is False
    assert data["projectName"] == "Demo"
    assert datetime.fromisoformat(data["releaseDate"].replace("Z", "+00:00")) == MODIFIED

    items = release.to_items()
    assert items["form"] == "release"
    assert items["releaseStatus"] == " YES "


def test_mapping_errors_carry_document_id():
    with pytest.raises(RecordMappingError) as info:
        map_record(doc("P9", Form="project", ProjectName="X", DownloadsProject="many"), "pmt.nsf")
    assert info.value.unid == "P9"

    with pytest.raises(RecordMappingError):
        map_record(doc("R9", Form="release", ProjectName="X", DownloadsRelease="1e400"), "pmt.nsf")

    with pytest.raises(RecordMappingError) as info:
        map_record(doc("P9", Form="project", ProjectName="X", Entry_Date="not a date"), "pmt.nsf")
    assert isinstance(info.value.cause, ValueError)

    with pytest.raises(RecordMappingError) as info:
        map_record(
            doc("R9", Form="release", ProjectName="X", WhatsNew={"type": "mime", "value": ""}),
            "pmt.nsf",
        )
    assert isinstance(info.value.cause, RichTextDecodeError)


def test_record_id_required():
    with pytest.raises(RecordMappingError):
        map_record(doc("", Form="project", ProjectName="X"), "pmt.nsf")


@pytest.mark.parametrize(
    "name,encoded",
    [
        ("Demo", "Demo"),
        ("My Project", "My+Project"),
        ("A&B/C", "A%26B%2FC"),
        ("Überblick", "%C3%9Cberblick"),
        ("a*b~c-d_e.f", "a*b%7Ec-d_e.f"),
        ("", ""),
    ],
)
def test_project_name_encoding(name, encoded):
    assert encode_project_name(name) == encoded
    assert project_source_url(name) == "https://www.openntf.org/main.nsf/project.xsp?r=project/" + encoded
