"""Endpoint URLs used by the core. Endpoint wrappers bring their own."""

API_BASE = "https://api.twitter.com"

REQUEST_TOKEN = f"{API_BASE}/oauth/request_token"
ACCESS_TOKEN = f"{API_BASE}/oauth/access_token"
AUTHORIZE = f"{API_BASE}/oauth/authorize"
AUTHENTICATE = f"{API_BASE}/oauth/authenticate"
BEARER_TOKEN = f"{API_BASE}/oauth2/token"
INVALIDATE_BEARER = f"{API_BASE}/oauth2/invalidate_token"
VERIFY_CREDENTIALS = f"{API_BASE}/1.1/account/verify_credentials.json"

FRIENDS_IDS = f"{API_BASE}/1.1/friends/ids.json"
FOLLOWERS_IDS = f"{API_BASE}/1.1/followers/ids.json"
FRIENDS_LIST = f"{API_BASE}/1.1/friends/list.json"
FOLLOWERS_LIST = f"{API_BASE}/1.1/followers/list.json"
LISTS_OWNERSHIPS = f"{API_BASE}/1.1/lists/ownerships.json"
USER_TIMELINE = f"{API_BASE}/1.1/statuses/user_timeline.json"
HOME_TIMELINE = f"{API_BASE}/1.1/statuses/home_timeline.json"
REVERSE_GEOCODE = f"{API_BASE}/1.1/geo/reverse_geocode.json"

STREAM_FILTER = "https://stream.twitter.com/1.1/statuses/filter.json"
STREAM_SAMPLE = "https://stream.twitter.com/1.1/statuses/sample.json"
