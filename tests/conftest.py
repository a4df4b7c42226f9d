import copy

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pydantic import BaseModel

import main
from database import timeline_to_documents


class FakeMessStore:
    """Dict-backed stand-in for the database helpers main.py imports."""

    def __init__(self):
        self.docs = {}

    def add(self, **fields):
        doc = dict(fields, _id=ObjectId())
        doc.setdefault("menu", [])
        self.docs[doc["_id"]] = doc
        return str(doc["_id"])

    def create_document(self, collection_name, data):
        assert collection_name == "mess"
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        return self.add(**data)

    def get_documents(self, collection_name):
        return [copy.deepcopy(doc) for doc in reversed(list(self.docs.values()))]

    def get_mess(self, mess_id):
        doc = self.docs.get(mess_id)
        return copy.deepcopy(doc) if doc else None

    def update_mess(self, mess_id, fields):
        if mess_id not in self.docs:
            return False
        self.docs[mess_id].update(copy.deepcopy(fields))
        return True

    def save_menu(self, mess_id, timeline):
        return self.update_mess(mess_id, {"menu": timeline_to_documents(timeline)})


@pytest.fixture
def store(monkeypatch) -> FakeMessStore:
    fake = FakeMessStore()
    monkeypatch.setattr(main, "db", object())
    for name in ("create_document", "get_documents", "get_mess", "update_mess", "save_menu"):
        monkeypatch.setattr(main, name, getattr(fake, name))
    return fake


@pytest.fixture
def client() -> TestClient:
    return TestClient(main.app)
