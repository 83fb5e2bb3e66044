#!/usr/bin/env python3
"""
Summarize the contents of a metadata store.

Prints the store title, the number of documents per form and any id that
is held by more than one document.  With ``--csv`` the documents of the
selected form are also written to a CSV file.
"""

import argparse
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from pmt_export.migrators.metadata_store import MetadataStore


def main():
    parser = argparse.ArgumentParser(description="Inspect a metadata store.")
    parser.add_argument("target", help="Metadata store (DuckDB file).")
    parser.add_argument("--form", choices=["project", "release"], default=None, help="Restrict to one form.")
    parser.add_argument("--csv", default=None, help="Write the documents to this CSV file.")
    args = parser.parse_args()

    if not os.path.exists(args.target):
        print(f"Metadata store not found: {args.target}", file=sys.stderr)
        sys.exit(1)

    with MetadataStore.open(args.target) as store:
        print(f"Title: {store.title}")
        print(f"Projects: {store.count('project')}")
        print(f"Releases: {store.count('release')}")

        duplicates = store.duplicate_ids()
        if duplicates:
            print(f"Ids held by more than one document: {', '.join(duplicates)}")

        if args.csv:
            df = store.to_dataframe(args.form)
            os.makedirs(os.path.dirname(args.csv) or ".", exist_ok=True)
            df.to_csv(args.csv, index=False)
            print(f"{len(df)} documents written to {args.csv}")


if __name__ == "__main__":
    main()
