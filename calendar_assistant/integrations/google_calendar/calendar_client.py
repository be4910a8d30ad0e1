"""
Google Calendar API wrapper for Calendar Assistant.

Owns the OAuth token cache and turns Calendar API resources into
CalendarEvent / TimeSlot values. API failures are logged and reported as
None (or an empty list / False) rather than raised.
"""

import logging
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ...core.config import DEFAULT_TIMEZONE
from ...core.dates import format_datetime_for_api, now_in, parse_date
from ...core.models import CalendarEvent, TimeSlot, TimeUsageSummary
from ...dashboard.usage import TimeUsageAnalyzer

logger = logging.getLogger(__name__)

# Changing scopes invalidates token.json; delete it and run `gcal auth`
SCOPES = ['https://www.googleapis.com/auth/calendar']

# Gray in the Google Calendar palette
BLOCK_COLOR_ID = '9'

PAGE_SIZE = 250


class GoogleCalendarClient:
    """
    Calendar API client for one Google account.

    credentials.json (the OAuth client downloaded from Google Cloud Console)
    and the cached token.json live in credentials_dir. Pass a pre-built
    service to skip OAuth entirely.
    """

    def __init__(self, credentials_dir: str, service=None, tz: Optional[tzinfo] = None):
        """
        Args:
            credentials_dir: Directory holding credentials.json and token.json
            service: Pre-built Calendar API service (skips authenticate())
            tz: Timezone for naive timestamps and event creation
        """
        self.credentials_dir = Path(credentials_dir)
        self.credentials_dir.mkdir(parents=True, exist_ok=True)
        self.credentials_file = self.credentials_dir / "credentials.json"
        self.token_file = self.credentials_dir / "token.json"
        self.service = service
        self.tz = tz or DEFAULT_TIMEZONE

    @property
    def is_authenticated(self) -> bool:
        return self.service is not None

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(self) -> bool:
        """
        Build the Calendar service from cached or fresh credentials.

        Order: cached token, refreshed token, interactive OAuth flow. New or
        refreshed credentials are written back to token.json.

        Returns:
            True once the service is ready
        """
        creds = self._load_token()

        if not creds or not creds.valid:
            creds = self._refresh(creds) or self._run_oauth_flow()
            if not creds:
                return False
            self._save_token(creds)

        try:
            self.service = build('calendar', 'v3', credentials=creds)
        except Exception as e:
            logger.error(f"Could not build Calendar service: {e}")
            return False

        logger.info("Calendar service ready")
        return True

    def _load_token(self) -> Optional[Credentials]:
        if not self.token_file.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self.token_file), SCOPES)
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable {self.token_file}: {e}")
            return None

    def _refresh(self, creds: Optional[Credentials]) -> Optional[Credentials]:
        if not (creds and creds.expired and creds.refresh_token):
            return None
        try:
            creds.refresh(Request())
        except Exception as e:
            logger.error(f"Token refresh failed: {e}")
            return None
        logger.info("Refreshed expired token")
        return creds

    def _run_oauth_flow(self) -> Optional[Credentials]:
        if not self.credentials_file.exists():
            logger.error(f"No OAuth client file at {self.credentials_file}")
            return None
        try:
            flow = InstalledAppFlow.from_client_secrets_file(str(self.credentials_file), SCOPES)
            creds = flow.run_local_server(port=0)
        except Exception as e:
            logger.error(f"OAuth flow failed: {e}")
            return None
        logger.info("OAuth flow completed")
        return creds

    def _save_token(self, creds: Credentials) -> None:
        try:
            self.token_file.write_text(creds.to_json())
        except OSError as e:
            logger.warning(f"Could not cache token in {self.token_file}: {e}")

    def _require_service(self) -> bool:
        if self.service is None:
            logger.error("Calendar service not built; call authenticate() first")
            return False
        return True

    # =========================================================================
    # Events
    # =========================================================================

    def _events(self):
        return self.service.events()

    def _event_time(self, dt: datetime) -> Dict[str, str]:
        """Event start/end body with explicit offset and IANA zone when known"""
        body = {'dateTime': format_datetime_for_api(dt, self.tz)}
        zone_name = getattr(self.tz, 'key', None)
        if zone_name:
            body['timeZone'] = zone_name
        return body

    def list_events(
        self,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        calendar_id: str = 'primary',
        max_results: Optional[int] = None,
        query: Optional[str] = None
    ) -> List[CalendarEvent]:
        """
        Events in a time range, expanded to single instances and following
        result pages.

        Args:
            time_min: Range start (default: now)
            time_max: Range end (default: open-ended)
            calendar_id: Calendar to read
            max_results: Cap on returned events (default: all)
            query: Free-text filter applied by the API

        Returns:
            Events ordered by start time (empty on error)
        """
        events = self._fetch_events(time_min, time_max, calendar_id, max_results, query)
        return events if events is not None else []

    def _fetch_events(
        self,
        time_min: Optional[datetime],
        time_max: Optional[datetime],
        calendar_id: str = 'primary',
        max_results: Optional[int] = None,
        query: Optional[str] = None
    ) -> Optional[List[CalendarEvent]]:
        """list_events body; None when the service is missing or a page fails"""
        if not self._require_service():
            return None

        params: Dict[str, Any] = {
            'calendarId': calendar_id,
            'timeMin': format_datetime_for_api(time_min or now_in(self.tz), self.tz),
            'maxResults': min(max_results or PAGE_SIZE, PAGE_SIZE),
            'singleEvents': True,
            'orderBy': 'startTime',
        }
        if time_max:
            params['timeMax'] = format_datetime_for_api(time_max, self.tz)
        if query:
            params['q'] = query

        items: List[Dict[str, Any]] = []
        try:
            while True:
                page = self._events().list(**params).execute()
                items.extend(page.get('items', []))
                next_token = page.get('nextPageToken')
                if not next_token or (max_results and len(items) >= max_results):
                    break
                params['pageToken'] = next_token
        except HttpError as e:
            logger.error(f"Listing events on {calendar_id} failed: {e}")
            return None

        if max_results:
            items = items[:max_results]
        logger.info(f"Listed {len(items)} event(s) on {calendar_id}")
        return [CalendarEvent.from_google(item, self.tz) for item in items]

    def get_event(self, event_id: str, calendar_id: str = 'primary') -> Optional[CalendarEvent]:
        """One event by ID, or None if it does not exist or the call fails."""
        if not self._require_service():
            return None

        try:
            resource = self._events().get(calendarId=calendar_id, eventId=event_id).execute()
        except HttpError as e:
            if e.resp.status == 404:
                logger.warning(f"No event {event_id} on {calendar_id}")
            else:
                logger.error(f"Fetching event {event_id} failed: {e}")
            return None

        return CalendarEvent.from_google(resource, self.tz)

    def create_event(
        self,
        summary: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
        location: Optional[str] = None,
        attendees: Optional[List[str]] = None,
        calendar_id: str = 'primary',
        color_id: Optional[str] = None,
        transparency: Optional[str] = None
    ) -> Optional[CalendarEvent]:
        """
        Insert an event.

        Args:
            summary: Title
            start: Start instant
            end: End instant
            description, location: Optional text fields
            attendees: Attendee email addresses
            calendar_id: Calendar to write
            color_id: Palette color
            transparency: 'opaque' (busy) or 'transparent' (free)

        Returns:
            The created CalendarEvent, or None on failure
        """
        if not self._require_service():
            return None

        body: Dict[str, Any] = {
            'summary': summary,
            'start': self._event_time(start),
            'end': self._event_time(end),
        }
        optional = {
            'description': description,
            'location': location,
            'attendees': [{'email': email} for email in attendees] if attendees else None,
            'colorId': color_id,
            'transparency': transparency,
        }
        body.update({key: value for key, value in optional.items() if value})

        try:
            created = self._events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as e:
            logger.error(f"Creating '{summary}' failed: {e}")
            return None

        logger.info(f"Created '{created.get('summary')}' ({created.get('id')})")
        return CalendarEvent.from_google(created, self.tz)

    def update_event(
        self,
        event_id: str,
        calendar_id: str = 'primary',
        **fields
    ) -> Optional[CalendarEvent]:
        """
        Read-modify-write an event.

        Args:
            event_id: Event to change
            calendar_id: Calendar holding it
            **fields: summary, description, location (strings), start, end
                (datetimes) and attendees (email list); None values are ignored

        Returns:
            The updated CalendarEvent, or None on failure
        """
        if not self._require_service():
            return None

        try:
            resource = self._events().get(calendarId=calendar_id, eventId=event_id).execute()

            for key, value in fields.items():
                if value is None:
                    continue
                if key in ('start', 'end'):
                    resource[key] = self._event_time(value)
                elif key == 'attendees':
                    resource[key] = [{'email': email} for email in value]
                else:
                    resource[key] = value

            updated = self._events().update(
                calendarId=calendar_id, eventId=event_id, body=resource
            ).execute()
        except HttpError as e:
            logger.error(f"Updating event {event_id} failed: {e}")
            return None

        logger.info(f"Updated '{updated.get('summary')}'")
        return CalendarEvent.from_google(updated, self.tz)

    def delete_event(self, event_id: str, calendar_id: str = 'primary') -> bool:
        """Delete an event; False if the call fails."""
        if not self._require_service():
            return False

        try:
            self._events().delete(calendarId=calendar_id, eventId=event_id).execute()
        except HttpError as e:
            logger.error(f"Deleting event {event_id} failed: {e}")
            return False

        logger.info(f"Deleted event {event_id}")
        return True

    # =========================================================================
    # Free/busy and derived views
    # =========================================================================

    def get_free_busy(
        self,
        time_min: datetime,
        time_max: datetime,
        calendar_ids: Optional[Iterable[str]] = None
    ) -> Optional[Dict[str, List[TimeSlot]]]:
        """
        Query busy intervals for a set of calendars.

        Calendars the API reports nothing for are left out of the result.

        Args:
            time_min: Start of the query window
            time_max: End of the query window
            calendar_ids: Calendar IDs or attendee emails (default: ['primary'])

        Returns:
            Mapping of calendar ID to busy intervals, or None on error
        """
        if not self._require_service():
            return None

        calendar_ids = list(calendar_ids or ['primary'])
        body = {
            'timeMin': format_datetime_for_api(time_min, self.tz),
            'timeMax': format_datetime_for_api(time_max, self.tz),
            'items': [{'id': calendar_id} for calendar_id in calendar_ids],
        }

        try:
            response = self.service.freebusy().query(body=body).execute()
        except HttpError as e:
            logger.error(f"HTTP error querying free/busy: {e}")
            return None

        calendars = response.get('calendars', {})
        busy_times: Dict[str, List[TimeSlot]] = {}
        for calendar_id in calendar_ids:
            calendar = calendars.get(calendar_id) or {}
            if calendar.get('errors'):
                logger.warning(f"Free/busy unavailable for {calendar_id}: {calendar['errors']}")
            busy = calendar.get('busy')
            if busy:
                busy_times[calendar_id] = [
                    TimeSlot(start=parse_date(b['start'], self.tz), end=parse_date(b['end'], self.tz))
                    for b in busy
                ]

        logger.info(f"Retrieved free/busy for {len(calendar_ids)} calendar(s)")
        return busy_times

    def analyze_time_usage(self, start: datetime, end: datetime) -> Optional[TimeUsageSummary]:
        """Summarize meeting and focus time between start and end; None if events cannot be read."""
        events = self._fetch_events(start, end)
        if events is None:
            return None
        return TimeUsageAnalyzer(self.tz).analyze(events, start, end)

    def block_time(
        self,
        start: datetime,
        end: datetime,
        summary: str = "Busy",
        description: str = "",
        color_id: str = BLOCK_COLOR_ID,
        calendar_id: str = 'primary'
    ) -> Optional[CalendarEvent]:
        """Create an opaque (busy) event with no attendees."""
        return self.create_event(
            summary=summary or "Busy",
            start=start,
            end=end,
            description=description,
            calendar_id=calendar_id,
            color_id=color_id,
            transparency='opaque',
        )

    def search_events(
        self,
        query: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        calendar_id: str = 'primary'
    ) -> Optional[List[CalendarEvent]]:
        """
        Events whose title or description contains query (case-insensitive).

        Defaults to the next 30 days. Returns None if events cannot be read.
        """
        start = start or now_in(self.tz)
        end = end or start + timedelta(days=30)
        events = self._fetch_events(start, end, calendar_id)
        if events is None:
            return None

        needle = query.lower()
        return [
            event for event in events
            if needle in (event.title or '').lower() or needle in (event.description or '').lower()
        ]
