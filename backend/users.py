"""Credential store: user identities and their salted password hashes.

The hash is write-only from the API's point of view. Every read returns a
serialized user without it, except ``find_by_email_with_hash`` which login
uses to verify a password.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends
from passlib.exc import PasswordValueError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from pydantic import ValidationError as PydanticValidationError

from backend.errors import Conflict, InvalidCredential, NotFound, ValidationError, from_pydantic
from backend.payloads import ProfileUpdate
from backend.security import get_password_hash, verify_password
from database import as_id, create_document, get_db
from schemas import User, to_iso

logger = logging.getLogger(__name__)

COLLECTION = "user"
_WITHOUT_HASH = {"password_hash": 0}


def _hash_password(password: str, field: str) -> str:
    try:
        return get_password_hash(password)
    except PasswordValueError as exc:
        raise ValidationError.single(field, str(exc) or "Password is not acceptable")


def serialize_user(doc: dict) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "email": doc.get("email"),
        "bio": doc.get("bio"),
        "avatar": doc.get("avatar"),
        "role": doc.get("role", "standard"),
        "createdAt": to_iso(doc.get("created_at")),
    }


class UserStore:
    def __init__(self, db: Database):
        self.db = db
        self.collection = db[COLLECTION]

    def create(self, name: str, email: str, password: str) -> Dict[str, Any]:
        """Persist a new user; raises Conflict when the email is taken."""
        email = email.strip().lower()
        if self.collection.find_one({"email": email}, {"_id": 1}):
            raise Conflict("An account with this email already exists.")
        try:
            doc = User(name=name, email=email, password_hash=_hash_password(password, "password"))
        except PydanticValidationError as exc:
            raise from_pydantic(exc)
        try:
            user_id = create_document(COLLECTION, doc, self.db)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email.
            raise Conflict("An account with this email already exists.")
        logger.info("Registered user %s", user_id)
        return self.get(user_id)

    def get(self, user_id: str) -> Dict[str, Any]:
        doc = self.find_by_id(user_id)
        if doc is None:
            raise NotFound("User not found.")
        return serialize_user(doc)

    def find_by_id(self, user_id: str, include_hash: bool = False) -> Optional[dict]:
        oid = as_id(user_id)
        if oid is None:
            return None
        projection = None if include_hash else _WITHOUT_HASH
        return self.collection.find_one({"_id": oid}, projection)

    def find_by_email_with_hash(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.strip().lower()})

    @staticmethod
    def verify_password(user: dict, plaintext: str) -> bool:
        password_hash = user.get("password_hash")
        if not password_hash:
            return False
        return verify_password(plaintext, password_hash)

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """Return the serialized user for valid credentials."""
        user = self.find_by_email_with_hash(email)
        if user is None or not self.verify_password(user, password):
            logger.info("Failed login attempt")
            raise InvalidCredential("Invalid email or password.")
        return serialize_user(user)

    def update_profile(self, user_id: str, fields: Any) -> Dict[str, Any]:
        """Apply a partial profile update (name, bio, avatar)."""
        if not isinstance(fields, ProfileUpdate):
            try:
                fields = ProfileUpdate.model_validate(fields)
            except PydanticValidationError as exc:
                raise from_pydantic(exc)
        updates = fields.model_dump(exclude_unset=True)
        oid = as_id(user_id)
        if oid is None:
            raise NotFound("User not found.")
        if updates:
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": updates},
                projection=_WITHOUT_HASH,
                return_document=ReturnDocument.AFTER,
            )
        else:
            doc = self.collection.find_one({"_id": oid}, _WITHOUT_HASH)
        if doc is None:
            raise NotFound("User not found.")
        return serialize_user(doc)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.find_by_id(user_id, include_hash=True)
        if user is None:
            raise NotFound("User not found.")
        if not self.verify_password(user, current_password):
            # The session stays valid, so this is a 400 and not a 401.
            raise InvalidCredential("Current password is incorrect.", status_code=400)
        self.collection.update_one(
            {"_id": user["_id"]},
            {"$set": {"password_hash": _hash_password(new_password, "newPassword")}},
        )
        logger.info("Password changed for user %s", user_id)


def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)
