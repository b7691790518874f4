"""
Database operations - point reads and writes by document key
"""
from typing import Dict, Optional, Any
from app.config.database import db_config

class DBOperations:
    """Generic database operations for MongoDB collections.

    Documents are addressed by string keys stored in `_id`.
    """

    @staticmethod
    async def get_by_key(collection_name: str, key: str) -> Optional[Dict]:
        """Get a single document by key"""
        collection = db_config.get_collection(collection_name)
        return await collection.find_one({"_id": key})

    @staticmethod
    async def exists(collection_name: str, key: str) -> bool:
        """Check whether a document with this key exists"""
        collection = db_config.get_collection(collection_name)
        document = await collection.find_one({"_id": key}, projection={"_id": 1})
        return document is not None

    @staticmethod
    async def create_once(collection_name: str, key: str, document: Dict) -> Dict:
        """
        Create a document at `key`. Never merges into or overwrites an
        existing document: raises pymongo.errors.DuplicateKeyError instead.
        """
        collection = db_config.get_collection(collection_name)
        document = {"_id": key, **document}
        await collection.insert_one(document)
        return document

    @staticmethod
    async def update_fields(
        collection_name: str,
        key: str,
        fields: Dict[str, Any],
        guard: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """$set `fields` on one document; `guard` adds extra filter conditions"""
        collection = db_config.get_collection(collection_name)
        query = {"_id": key, **(guard or {})}
        result = await collection.update_one(query, {"$set": fields})
        return result.matched_count > 0

db_ops = DBOperations()
