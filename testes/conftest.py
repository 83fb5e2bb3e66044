import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest


def make_doc(unid, form, created="2015-01-01T10:00:00+00:00", last_modified=None, conflict=False, **items):
    """One document of a legacy export, as found in the export file."""
    doc_items = {"Form": form}
    doc_items.update(items)
    return {
        "unid": unid,
        "created": created,
        "lastModified": last_modified or created,
        "conflict": conflict,
        "items": doc_items,
    }


HTML_MIME = (
    "MIME-Version: 1.0\n"
    'Content-Type: multipart/alternative; boundary="BOUNDARY"\n'
    "\n"
    "--BOUNDARY\n"
    "Content-Type: text/plain; charset=UTF-8\n"
    "\n"
    "plain version\n"
    "--BOUNDARY\n"
    "Content-Type: text/html; charset=UTF-8\n"
    "\n"
    "<p>Bug <i>fixes</i></p>\n"
    "--BOUNDARY--\n"
)


def sample_documents():
    return [
        make_doc(
            "P1",
            "project",
            last_modified="2020-05-01T12:00:00+00:00",
            ProjectName="Demo",
            ProjectOverview="A demo project",
            Details={"type": "composite", "value": "<b>Hi</b>"},
            DownloadsProject=5,
            MainCat="Tools",
            MasterChef=["Jane Doe"],
            ProjectCooks=["Ann", "Bob"],
            GithubProject="https://github.com/example/demo",
        ),
        make_doc("P2", "project", ProjectName="Demo copy", conflict=True),
        make_doc("P3", "Project", ProjectName="   "),
        make_doc(
            "P4",
            "PROJECT",
            ProjectName="My Project",
            Details="<p>Second <br> project</p>",
            Entry_Date="2012-02-02T08:00:00+00:00",
            ReleaseDate="2019-09-09T09:00:00+00:00",
        ),
        make_doc(
            "R1",
            "release",
            ProjectName="Demo",
            ReleaseNumber="1.0",
            ReleaseDate="2018-01-01T00:00:00+00:00",
            WhatsNew={"type": "composite", "value": [["First ", {"text": "release", "bold": True}]]},
            DownloadsRelease=3,
            MainId="P1",
            ReleaseInCatalog="Yes",
            Status="n",
            Entry_Person="Jane Doe",
            MasterChef=["Jane Doe"],
            LicenseType="Apache 2.0",
        ),
        make_doc(
            "R2",
            "release",
            ProjectName="Demo",
            ReleaseNumber="2.0",
            ReleaseDate="2021-03-01T00:00:00+00:00",
            WhatsNew={"type": "mime", "value": HTML_MIME},
            Status="Y",
        ),
    ]


def write_export(path, documents, title="OpenNTF Projects", db_path="projects/pmt.nsf"):
    data = {"title": title, "path": db_path, "documents": documents}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return str(path)


@pytest.fixture
def source_file(tmp_path):
    return write_export(tmp_path / "pmt.json", sample_documents())
