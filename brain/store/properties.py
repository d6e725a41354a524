"""
Notion Property Helpers

Reading and writing Notion page properties. Reads are lenient: a property
that is missing, of the wrong type, or holds an unknown option reads as
absent, so records written before a field existed still load.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..common.schemas import Category, NewNote, Note, NoteStatus, Subcategory

# Notion caps a single rich_text segment at 2000 characters
RICH_TEXT_LIMIT = 2000

# Property names in the Notion database
TITLE = "Title"
CONTENT = "Content"
CATEGORY = "Category"
SUBCATEGORY = "Subcategory"
CONFIDENCE = "Confidence"
SOURCE_CHANNEL = "Source Channel"
TIMESTAMP = "Timestamp"
SLACK_MESSAGE_ID = "Slack Message ID"
URLS = "URLs"
NEXT_ACTION = "Next Action"
STATUS = "Status"
SYNCED_STATUS = "Synced Status"
LAST_REMINDER = "Last Reminder"
REMINDER_COUNT = "Reminder Count"
APPENDED_REPLIES = "Appended Replies"


# ============================================================================
# Writers
# ============================================================================

def rich_text(value: str) -> List[Dict[str, Any]]:
    """Split text into rich_text segments under the per-segment limit"""
    if not value:
        return []
    return [
        {"type": "text", "text": {"content": value[i:i + RICH_TEXT_LIMIT]}}
        for i in range(0, len(value), RICH_TEXT_LIMIT)
    ]


def text_prop(value: str) -> Dict[str, Any]:
    return {"rich_text": rich_text(value)}


def select_prop(value: Optional[str]) -> Dict[str, Any]:
    return {"select": {"name": value} if value else None}


def date_prop(value: Optional[datetime]) -> Dict[str, Any]:
    return {"date": {"start": value.isoformat()} if value else None}


def build_properties(new_note: NewNote) -> Dict[str, Any]:
    """Full property set for a new page"""
    properties: Dict[str, Any] = {
        TITLE: {"title": rich_text(new_note.title)},
        CONTENT: text_prop(new_note.content),
        CATEGORY: select_prop(new_note.category.value),
        CONFIDENCE: {"number": new_note.confidence},
        SOURCE_CHANNEL: text_prop(new_note.channel_id),
        TIMESTAMP: date_prop(new_note.created_at),
        SLACK_MESSAGE_ID: text_prop(new_note.external_message_id),
        URLS: text_prop(", ".join(new_note.urls)),
        STATUS: select_prop(NoteStatus.OPEN.value),
        SYNCED_STATUS: select_prop(NoteStatus.OPEN.value),
        REMINDER_COUNT: {"number": 0},
    }
    if new_note.next_action:
        properties[NEXT_ACTION] = text_prop(new_note.next_action)
    if new_note.subcategory:
        properties[SUBCATEGORY] = select_prop(new_note.subcategory.value)
    return properties


# ============================================================================
# Readers
# ============================================================================

def _prop(properties: Dict[str, Any], name: str, kind: str) -> Any:
    prop = properties.get(name)
    if not isinstance(prop, dict):
        return None
    return prop.get(kind)


def get_text(properties: Dict[str, Any], name: str) -> str:
    """Concatenated plain text of a rich_text property"""
    return _join_plain_text(_prop(properties, name, "rich_text"))


def get_title(properties: Dict[str, Any], name: str = TITLE) -> str:
    return _join_plain_text(_prop(properties, name, "title"))


def _join_plain_text(segments: Any) -> str:
    if not isinstance(segments, list):
        return ""
    parts = []
    for segment in segments:
        if isinstance(segment, dict):
            text = segment.get("plain_text")
            if text is None:
                text = (segment.get("text") or {}).get("content", "")
            parts.append(text or "")
    return "".join(parts)


def get_select(properties: Dict[str, Any], name: str) -> Optional[str]:
    select = _prop(properties, name, "select")
    if isinstance(select, dict) and select.get("name"):
        return select["name"]
    return None


def get_number(properties: Dict[str, Any], name: str) -> Optional[float]:
    number = _prop(properties, name, "number")
    if isinstance(number, (int, float)) and not isinstance(number, bool):
        return number
    return None


def get_date(properties: Dict[str, Any], name: str) -> Optional[datetime]:
    date = _prop(properties, name, "date")
    if isinstance(date, dict) and date.get("start"):
        return parse_iso(date["start"])
    return None


def parse_iso(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None


def _enum_or(enum_cls, value: Optional[str], default):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def split_list(value: str) -> List[str]:
    """Comma-joined text property (URLs, reply ids) as a list"""
    return [item.strip() for item in value.split(",") if item.strip()]


def page_to_note(page: Dict[str, Any]) -> Note:
    """Build a Note from a Notion page object"""
    page_id = page.get("id")
    if not page_id:
        raise ValueError("Notion page has no id")

    properties = page.get("properties") or {}
    reminder_count = get_number(properties, REMINDER_COUNT)

    return Note(
        id=page_id,
        external_message_id=get_text(properties, SLACK_MESSAGE_ID),
        channel_id=get_text(properties, SOURCE_CHANNEL),
        content=get_text(properties, CONTENT),
        title=get_title(properties),
        category=_enum_or(Category, get_select(properties, CATEGORY), Category.UNCATEGORIZED),
        subcategory=_enum_or(Subcategory, get_select(properties, SUBCATEGORY), None),
        confidence=get_number(properties, CONFIDENCE) or 0.0,
        next_action=get_text(properties, NEXT_ACTION) or None,
        urls=split_list(get_text(properties, URLS)),
        status=_enum_or(NoteStatus, get_select(properties, STATUS), NoteStatus.OPEN),
        synced_status=_enum_or(NoteStatus, get_select(properties, SYNCED_STATUS), None),
        last_reminder_at=get_date(properties, LAST_REMINDER),
        reminder_count=max(0, int(reminder_count or 0)),
        created_at=get_date(properties, TIMESTAMP) or parse_iso(page.get("created_time", "")),
        appended_reply_ids=split_list(get_text(properties, APPENDED_REPLIES)),
    )
