"""Shared pytest fixtures."""

from datetime import UTC, datetime

import pytest

from dbview.config import Config
from dbview.core.modules.property.models import Property, PropertyConfig, PropertyOption, PropertyType
from dbview.core.modules.record.models import Record
from dbview.core.modules.store.memory import Database, InMemoryRecordStore
from dbview.core.modules.view.models import View, ViewSettings, ViewType

CREATED = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def status_property():
    """Select property with three options."""
    return Property(
        id="status",
        name="Status",
        type=PropertyType.SELECT,
        order=1,
        config=PropertyConfig(
            options=[
                PropertyOption(id="todo", label="Todo", color="#ef4444"),
                PropertyOption(id="doing", label="Doing", color="#f59e0b"),
                PropertyOption(id="done", label="Done", color="#10b981"),
            ]
        ),
    )


@pytest.fixture
def properties(status_property):
    """Schema covering the main property type families."""
    return [
        Property(id="title", name="Title", type=PropertyType.TEXT, is_system=True, order=0),
        status_property,
        Property(
            id="tags",
            name="Tags",
            type=PropertyType.MULTI_SELECT,
            order=2,
            config=PropertyConfig(
                options=[
                    PropertyOption(id="home", label="Home"),
                    PropertyOption(id="work", label="Work"),
                    PropertyOption(id="urgent", label="Urgent"),
                ]
            ),
        ),
        Property(id="estimate", name="Estimate", type=PropertyType.NUMBER, order=3),
        Property(id="due", name="Due", type=PropertyType.DATE, order=4),
        Property(id="done", name="Done", type=PropertyType.CHECKBOX, order=5),
        Property(id="notes", name="Notes", type=PropertyType.RICH_TEXT, order=6, is_visible=False),
    ]


@pytest.fixture
def records():
    """Records keyed by property id, in creation order."""
    return [
        Record(
            id="r1",
            created_at=CREATED,
            updated_at=CREATED,
            properties={
                "title": "Write report",
                "status": "todo",
                "tags": ["work"],
                "estimate": 3,
                "due": "2024-03-10",
                "done": False,
            },
        ),
        Record(
            id="r2",
            created_at=CREATED,
            updated_at=CREATED,
            properties={
                "title": "Buy groceries",
                "status": {"id": "done", "label": "Done", "color": "#10b981"},
                "tags": ["home", "urgent"],
                "estimate": 1,
                "due": "2024-03-08T15:30:00Z",
                "done": True,
            },
        ),
        Record(
            id="r3",
            created_at=CREATED,
            updated_at=CREATED,
            properties={"title": "Plan trip", "status": None, "tags": [], "estimate": None, "notes": "Ask about visas"},
        ),
        Record(
            id="r4",
            created_at=CREATED,
            updated_at=CREATED,
            properties={"title": "Fix bike", "status": "doing", "tags": ["home"], "estimate": 2, "due": "2024-03-12"},
        ),
    ]


@pytest.fixture
def views():
    """Default table view and a board view."""
    return [
        View(id="table", name="All", type=ViewType.TABLE, is_default=True),
        View(
            id="board",
            name="Board",
            type=ViewType.BOARD,
            settings=ViewSettings(visible_properties=["title", "status"], hidden_properties=["notes"]),
        ),
    ]


@pytest.fixture
def database(properties, views, records):
    return Database(id="db", name="Tasks", properties=properties, views=views, records=records)


@pytest.fixture
def store(database):
    """In-memory record store holding the test database."""
    return InMemoryRecordStore([database])


@pytest.fixture
def config():
    return Config(default_page_size=2)
