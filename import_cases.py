import os
import sys
import json
import logging
import argparse

from pathlib import Path
from typing import Any, Dict, List
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from ciaa_crawler.pipelines_mongo import case_operation, ensure_indexes, now_utc

logging.basicConfig(
    level=os.getenv("IMPORT_LOGLEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger("import")

MONGO_URI        = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB         = os.getenv("MONGO_DB", "nepal-corruption-directory")
MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "cases")
DEFAULT_INPUT    = os.getenv("CIAA_OUTPUT", "ciaa-historical-cases.json")

def load_cases(path: Path) -> List[Dict[str, Any]]:
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not hold a list of cases")
    return data

def stored_count(coll):
    """Documents already in the collection, or None when the server will not say."""
    try:
        return coll.estimated_document_count()
    except PyMongoError as e:
        logger.warning("Counting stored cases failed (continuing): %s", e)
        return None

def import_cases(coll, docs: List[Dict[str, Any]]):
    """Upsert each case on detailUrl; cases without one are inserted every time."""
    tally = {"processed": 0, "inserted": 0, "updated": 0, "unchanged": 0, "errors": 0}
    for doc in docs:
        try:
            op = case_operation(doc, now_utc())
            res = coll.bulk_write([op], ordered=True)
            if res.inserted_count or res.upserted_count:
                tally["inserted"] += 1
            elif res.modified_count:
                tally["updated"] += 1
            else:
                tally["unchanged"] += 1
        except PyMongoError as e:
            tally["errors"] += 1
            logger.exception("Import failed for %s: %s", doc.get("id"), e)
        tally["processed"] += 1
        if tally["processed"] % 200 == 0:
            logger.info("... processed=%d inserted=%d updated=%d errors=%d",
                        tally["processed"], tally["inserted"], tally["updated"], tally["errors"])
    return tally

def main():
    ap = argparse.ArgumentParser(description="Import a CIAA crawl output file into MongoDB.")
    ap.add_argument("--input", default=DEFAULT_INPUT, help="JSON file written by the cases spider")
    args = ap.parse_args()

    path = Path(args.input)
    try:
        docs = load_cases(path)
    except (OSError, ValueError) as e:
        logger.error("Cannot read %s: %s", path, e)
        sys.exit(2)
    logger.info("Loaded %d cases from %s", len(docs), path)

    try:
        client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=6000)
        client.admin.command("ping")
    except PyMongoError as e:
        logger.error("Mongo connection failed: %s", e)
        sys.exit(2)

    coll = client[MONGO_DB][MONGO_COLLECTION]
    try:
        ensure_indexes(coll)
    except PyMongoError as e:
        logger.warning("Index creation failed (continuing): %s", e)

    existing = stored_count(coll)
    if existing is not None:
        logger.info("Cases already stored: %d", existing)

    tally = import_cases(coll, docs)
    client.close()
    logger.info("Done. processed=%d inserted=%d updated=%d unchanged=%d errors=%d",
                tally["processed"], tally["inserted"], tally["updated"], tally["unchanged"], tally["errors"])

if __name__ == "__main__":
    main()
