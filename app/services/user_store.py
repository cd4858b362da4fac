from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from app.core.config import Settings

ACTIVE_STATUS = "ACTIVE"


class UserStore(ABC):
    @abstractmethod
    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: str,
        status: str = ACTIVE_STATUS,
    ) -> dict[str, Any]:
        """Persist a new account. Raises ValueError when the email is taken."""
        raise NotImplementedError

    @abstractmethod
    def set_user_status(self, user_id: str, status: str) -> dict[str, Any] | None:
        raise NotImplementedError


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._next_id = 1
        self._accounts: dict[str, dict[str, Any]] = {}
        self._email_index: dict[str, str] = {}

    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        account = self._accounts.get(str(user_id).strip())
        return dict(account) if account else None

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        account_id = self._email_index.get(_normalize_email(email))
        if account_id is None:
            return None
        return self.get_user_by_id(account_id)

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: str,
        status: str = ACTIVE_STATUS,
    ) -> dict[str, Any]:
        document = _build_user_document(
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            role=role,
            status=status,
        )
        if document["email"] in self._email_index:
            raise ValueError("email_already_exists")

        account_id = str(self._next_id)
        self._next_id += 1
        document["_id"] = account_id
        self._accounts[account_id] = document
        self._email_index[document["email"]] = account_id
        return dict(document)

    def set_user_status(self, user_id: str, status: str) -> dict[str, Any] | None:
        account = self._accounts.get(str(user_id).strip())
        if account is None:
            return None
        account.update(status=_normalize_code(status), updated_at=datetime.now(UTC))
        return dict(account)


class MongoUserStore(UserStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        users_collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        self._collection = client[db_name][users_collection_name]
        self._collection.create_index("email", unique=True)

    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None
        return _serialize_user_record(self._collection.find_one({"_id": object_id}))

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        return _serialize_user_record(self._collection.find_one({"email": _normalize_email(email)}))

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: str,
        status: str = ACTIVE_STATUS,
    ) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        document = _build_user_document(
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            role=role,
            status=status,
        )
        try:
            result = self._collection.insert_one(document)
        except DuplicateKeyError as exc:
            raise ValueError("email_already_exists") from exc

        created = _serialize_user_record(self._collection.find_one({"_id": result.inserted_id}))
        if created is None:
            raise RuntimeError("Unable to read created user.")
        return created

    def set_user_status(self, user_id: str, status: str) -> dict[str, Any] | None:
        from pymongo import ReturnDocument

        object_id = _to_object_id(user_id)
        if object_id is None:
            return None
        updated = self._collection.find_one_and_update(
            {"_id": object_id},
            {"$set": {"status": _normalize_code(status), "updated_at": datetime.now(UTC)}},
            return_document=ReturnDocument.AFTER,
        )
        return _serialize_user_record(updated)


def _build_user_document(
    *,
    email: str,
    full_name: str,
    password_hash: str,
    role: str,
    status: str,
) -> dict[str, Any]:
    now = datetime.now(UTC)
    return {
        "email": _normalize_email(email),
        "full_name": full_name.strip(),
        "password_hash": password_hash,
        "role": _normalize_code(role),
        "status": _normalize_code(status),
        "created_at": now,
        "updated_at": now,
    }


def _to_object_id(record_id: str) -> Any | None:
    from bson import ObjectId
    from bson.errors import InvalidId

    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        return None


def _serialize_user_record(record: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not record:
        return None
    serialized = dict(record)
    serialized["_id"] = str(record.get("_id", ""))
    serialized.setdefault("status", ACTIVE_STATUS)
    return serialized


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _normalize_code(value: str) -> str:
    return str(value).strip().upper()


def create_user_store(settings: Settings) -> UserStore:
    return _create_user_store_cached(
        data_store=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_users_collection=settings.mongodb_users_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_user_store_cached(
    *,
    data_store: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_users_collection: str,
    mongodb_connect_timeout_ms: int,
) -> UserStore:
    if data_store != "mongodb":
        return InMemoryUserStore()

    return MongoUserStore(
        uri=mongodb_uri,
        db_name=mongodb_db_name,
        users_collection_name=mongodb_users_collection,
        connect_timeout_ms=mongodb_connect_timeout_ms,
    )


def clear_user_store_cache() -> None:
    _create_user_store_cached.cache_clear()
