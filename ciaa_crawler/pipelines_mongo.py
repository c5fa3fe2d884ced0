import logging
import os
import time
from typing import Any, Dict

from pymongo import InsertOne, MongoClient, UpdateOne

from ciaa_crawler.items import to_document

logger = logging.getLogger(__name__)


def now_utc():
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def case_operation(doc: Dict[str, Any], now: str):
    """Upsert on detailUrl; cases without one have no natural key and are always inserted."""
    doc = dict(doc)
    doc["updatedAt"] = now
    if doc.get("detailUrl"):
        return UpdateOne(
            {"detailUrl": doc["detailUrl"]},
            {"$set": doc, "$setOnInsert": {"firstSeen": now}},
            upsert=True,
        )
    doc["firstSeen"] = now
    return InsertOne(doc)


def ensure_indexes(coll):
    coll.create_index(
        "detailUrl",
        unique=True,
        partialFilterExpression={"detailUrl": {"$type": "string"}},
    )
    coll.create_index([("category", 1), ("fiscalYear", 1)])


class MongoPipeline:
    def __init__(self, uri: str, db_name: str, coll_name: str):
        self.uri = uri
        self.db_name = db_name
        self.coll_name = coll_name
        self.client = None
        self.coll = None
        self.ops = []

    @classmethod
    def from_crawler(cls, crawler):
        uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        db = os.getenv("MONGO_DB", "nepal-corruption-directory")
        coll = os.getenv("MONGO_COLLECTION", "cases")
        return cls(uri, db, coll)

    def open_spider(self):
        self.client = MongoClient(self.uri, serverSelectionTimeoutMS=6000)
        self.client.admin.command("ping")
        self.coll = self.client[self.db_name][self.coll_name]
        ensure_indexes(self.coll)
        self.ops = []

    def process_item(self, item):
        self.ops.append(case_operation(to_document(item), now_utc()))
        return item

    def close_spider(self):
        try:
            if self.ops:
                # one ordered batch at close: a run that dies before closing writes
                # nothing, but a batch failing midway keeps the operations before it
                res = self.coll.bulk_write(self.ops, ordered=True)
                logger.info(
                    "Mongo: inserted=%d upserted=%d updated=%d",
                    res.inserted_count,
                    res.upserted_count,
                    res.modified_count,
                )
        finally:
            if self.client:
                self.client.close()
