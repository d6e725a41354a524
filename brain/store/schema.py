"""Notion database schema for captured notes."""

from . import properties as p

DATABASE_TITLE = "Brain Captures"

DATABASE_PROPERTIES = {
    p.TITLE: {"title": {}},
    p.STATUS: {
        "select": {
            "options": [
                {"name": "Open", "color": "yellow"},
                {"name": "Done", "color": "green"},
                {"name": "Parked", "color": "gray"},
            ]
        }
    },
    p.SYNCED_STATUS: {
        "select": {
            "options": [
                {"name": "Open", "color": "yellow"},
                {"name": "Done", "color": "green"},
            ]
        }
    },
    p.CATEGORY: {
        "select": {
            "options": [
                {"name": "Projects", "color": "red"},
                {"name": "Areas", "color": "blue"},
                {"name": "Resources", "color": "green"},
                {"name": "Archive", "color": "gray"},
                {"name": "Inbox", "color": "yellow"},
                {"name": "Uncategorized", "color": "default"},
            ]
        }
    },
    p.SUBCATEGORY: {
        "select": {
            "options": [
                {"name": "Relationships", "color": "pink"},
                {"name": "Health", "color": "green"},
                {"name": "Finances", "color": "yellow"},
                {"name": "Career", "color": "purple"},
                {"name": "Home", "color": "orange"},
            ]
        }
    },
    p.URLS: {"rich_text": {}},
    p.CONTENT: {"rich_text": {}},
    p.NEXT_ACTION: {"rich_text": {}},
    p.CONFIDENCE: {"number": {"format": "percent"}},
    p.SOURCE_CHANNEL: {"rich_text": {}},
    p.TIMESTAMP: {"date": {}},
    p.SLACK_MESSAGE_ID: {"rich_text": {}},
    p.LAST_REMINDER: {"date": {}},
    p.REMINDER_COUNT: {"number": {}},
    p.APPENDED_REPLIES: {"rich_text": {}},
}


def missing_properties(existing: dict) -> dict:
    """Schema entries absent from an existing database's properties.

    The title property is never reported: every database already has one.
    """
    return {
        name: definition
        for name, definition in DATABASE_PROPERTIES.items()
        if name not in existing and "title" not in definition
    }
