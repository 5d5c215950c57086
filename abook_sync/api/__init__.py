"""
abook_sync.api - Google People API access

Wraps the People API calls used to list and modify contacts.
"""

from abook_sync.api.people_api import PeopleAPI, PeopleAPIError

__all__ = ["PeopleAPI", "PeopleAPIError"]
