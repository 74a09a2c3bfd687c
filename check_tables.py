import sys

from dotenv import load_dotenv

load_dotenv()

from heirlooms.infra.adaptive_insert import fetch_columns
from heirlooms.infra.artifact_db import ArtifactRepository
from heirlooms.infra.collection_db import CollectionRepository
from heirlooms.db import get_conn


def check_tables(create: bool = False):
    """Print the live columns of the Heirlooms tables, creating them first if asked."""
    try:
        if create:
            # artifacts references collections
            CollectionRepository().ensure_schema()
            ArtifactRepository().ensure_schema()
            print("Schema ensured.")

        for table in ("collections", "artifacts"):
            columns = sorted(fetch_columns(get_conn, table))
            if columns:
                print(f"Columns in {table}:", columns)
            else:
                print(f"Table {table} not found.")
    except Exception as e:
        print(f"Error connecting to DB: {e}")


if __name__ == "__main__":
    check_tables(create="--create" in sys.argv)
