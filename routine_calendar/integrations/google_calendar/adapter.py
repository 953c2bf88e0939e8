"""
Bidirectional mapping between internal Event format and Google Calendar API format.

Handles:
- DateTime formatting (RFC 3339 plus IANA timeZone for Google API)
- All-day event handling
- Attendee mapping
"""

from datetime import datetime, timezone
from typing import Optional

from dateutil.parser import parse as parse_datetime

from routine_calendar.integrations.base import CalendarEvent, CreateEventRequest


class GoogleCalendarAdapter:
    """Maps between internal Event format and Google Calendar API format."""

    @staticmethod
    def to_google_event(event: CreateEventRequest) -> dict:
        """
        Convert internal event request to Google Calendar API format.

        Args:
            event: Internal event request

        Returns:
            Dict suitable for Google Calendar API insert
        """
        google_event: dict = {
            "summary": event.title,
        }

        if event.description:
            google_event["description"] = event.description

        if event.location:
            google_event["location"] = event.location

        if event.all_day:
            google_event["start"] = _format_date(event.start_time)
            google_event["end"] = _format_date(event.end_time)
        else:
            google_event["start"] = _format_timed(event.start_time, event.timezone)
            google_event["end"] = _format_timed(event.end_time, event.timezone)

        if event.attendees:
            google_event["attendees"] = [
                {"email": email} for email in event.attendees
            ]

        private_props = {}
        for key, value in event.metadata.items():
            if isinstance(value, (str, int, float, bool)):
                private_props[key] = str(value)

        if private_props:
            google_event["extendedProperties"] = {
                "private": private_props,
            }

        return google_event

    @staticmethod
    def from_google_event(google_event: dict, calendar_id: str) -> CalendarEvent:
        """
        Convert Google Calendar event to internal format.

        Args:
            google_event: Event from Google Calendar API
            calendar_id: Calendar ID the event belongs to

        Returns:
            CalendarEvent in internal format
        """
        start_data = google_event.get("start", {})
        end_data = google_event.get("end", {})

        if "dateTime" in start_data:
            start_time = _parse_datetime(start_data["dateTime"])
            end_time = _parse_datetime(end_data.get("dateTime", start_data["dateTime"]))
            all_day = False
        elif "date" in start_data:
            start_time = _parse_date(start_data["date"])
            end_time = _parse_date(end_data.get("date", start_data["date"]))
            all_day = True
        else:
            # Cancelled instances of recurring events carry no times
            start_time = datetime.now(timezone.utc)
            end_time = start_time
            all_day = False

        attendees = []
        for attendee in google_event.get("attendees", []):
            email = attendee.get("email")
            if email:
                attendees.append(email)

        ext_props = google_event.get("extendedProperties", {})
        private_props = ext_props.get("private", {})

        metadata = {
            "etag": google_event.get("etag"),
            "created": google_event.get("created"),
            "updated": google_event.get("updated"),
            "time_zone": start_data.get("timeZone"),
            **private_props,
        }

        return CalendarEvent(
            id=google_event.get("id", ""),
            calendar_id=calendar_id,
            title=google_event.get("summary", "Untitled"),
            description=google_event.get("description"),
            start_time=start_time,
            end_time=end_time,
            all_day=all_day,
            location=google_event.get("location"),
            attendees=attendees,
            status=google_event.get("status", "confirmed"),
            html_link=google_event.get("htmlLink"),
            metadata=metadata,
        )

    @staticmethod
    def to_update_body(updates: dict) -> dict:
        """
        Convert update dict to Google Calendar API format.

        Args:
            updates: Dict of field updates. Recognised keys: title,
                description, location, status, start_time, end_time,
                all_day, timezone, attendees.

        Returns:
            Dict suitable for Google Calendar API patch
        """
        google_updates: dict = {}

        if "title" in updates:
            google_updates["summary"] = updates["title"]

        if "description" in updates:
            google_updates["description"] = updates["description"]

        if "location" in updates:
            google_updates["location"] = updates["location"]

        if "status" in updates:
            google_updates["status"] = updates["status"]

        all_day = updates.get("all_day", False)
        tz_name = updates.get("timezone")

        if "start_time" in updates:
            start = updates["start_time"]
            google_updates["start"] = (
                _format_date(start) if all_day else _format_timed(start, tz_name)
            )

        if "end_time" in updates:
            end = updates["end_time"]
            google_updates["end"] = (
                _format_date(end) if all_day else _format_timed(end, tz_name)
            )

        if "attendees" in updates:
            google_updates["attendees"] = [
                {"email": email} for email in updates["attendees"]
            ]

        return google_updates


def _format_timed(dt: datetime, tz_name: Optional[str]) -> dict:
    """
    Build a timed start/end block.

    Naive datetimes are wall-clock times in ``tz_name`` (UTC when absent);
    Google resolves them against the timeZone field.
    """
    block = {"dateTime": dt.isoformat()}
    if tz_name:
        block["timeZone"] = tz_name
    elif dt.tzinfo is None:
        block["timeZone"] = "UTC"
    return block


def _format_date(dt: datetime) -> dict:
    return {"date": dt.strftime("%Y-%m-%d")}


def _parse_datetime(dt_str: str) -> datetime:
    """
    Parse datetime string from Google API.

    Args:
        dt_str: RFC 3339 datetime string

    Returns:
        Parsed datetime, UTC if the string carried no offset
    """
    dt = parse_datetime(dt_str)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date(date_str: str) -> datetime:
    """
    Parse date string from Google API (for all-day events).

    Args:
        date_str: Date string in YYYY-MM-DD format

    Returns:
        Datetime at midnight UTC
    """
    return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
