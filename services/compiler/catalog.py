"""Catalog of capabilities a visual node may select."""

from typing import Dict, List, Optional
from services.compiler.models import ApiEndpoint, EndpointParam

YOUTUBE = "youtube"
OPENAI = "openai"
DATABASE = "database"
EXTERNAL = "external"


def _param(name: str, type_: str, required: bool = False, description: str = "", default=None) -> EndpointParam:
    return EndpointParam(name=name, type=type_, required=required, description=description, default=default)


ACCESS_TOKEN = _param("access_token", "string", True, "OAuth access token")
CHANNEL_ID = _param("channel_id", "string", True, "Channel ID")

ENDPOINTS: List[ApiEndpoint] = [
    ApiEndpoint(
        id="youtube-channels",
        name="Get Channel Info",
        description="Fetch channel information and statistics",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, CHANNEL_ID],
        outputs=[_param("channelData", "object", True, "Channel information and stats")],
    ),
    ApiEndpoint(
        id="youtube-analytics",
        name="Get Analytics Data",
        description="Fetch channel analytics reports",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, CHANNEL_ID],
        outputs=[
            _param("analyticsRows", "array", True, "Analytics data rows"),
            _param("columnHeaders", "array", True, "Column definitions"),
        ],
    ),
    ApiEndpoint(
        id="youtube-videos",
        name="Get Video Details",
        description="Fetch details for a list of videos",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("video_ids", "array", True, "Video IDs")],
        outputs=[_param("videoDetails", "array", True, "Video information array")],
    ),
    ApiEndpoint(
        id="youtube-search",
        name="Search YouTube",
        description="Search videos, channels or playlists",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("query", "string", True, "Search query")],
        outputs=[_param("searchResults", "array", True, "Search results array")],
    ),
    ApiEndpoint(
        id="youtube-playlist-items",
        name="Get Playlist Items",
        description="List the videos of a playlist",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("playlist_id", "string", True, "Playlist ID")],
        outputs=[_param("playlistItems", "array", True, "Playlist entries")],
    ),
    ApiEndpoint(
        id="youtube-comment-threads",
        name="Get Comment Threads",
        description="List top-level comments of a video",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("video_id", "string", True, "Video ID")],
        outputs=[_param("comments", "array", True, "Top-level comments")],
    ),
    ApiEndpoint(
        id="youtube-captions",
        name="Get Captions",
        description="List caption tracks of a video",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("video_id", "string", True, "Video ID")],
        outputs=[_param("captions", "array", True, "Caption tracks")],
    ),
    ApiEndpoint(
        id="youtube-playlists",
        name="Get Playlists",
        description="List channel playlists",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, CHANNEL_ID],
        outputs=[_param("playlists", "array", True, "Playlists")],
    ),
    ApiEndpoint(
        id="youtube-subscriptions",
        name="Get Subscriptions",
        description="List channel subscriptions",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, CHANNEL_ID],
        outputs=[_param("subscriptions", "array", True, "Subscriptions")],
    ),
    ApiEndpoint(
        id="youtube-comments",
        name="Get Comments",
        description="List replies to a comment",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("parent_id", "string", True, "Parent comment ID")],
        outputs=[_param("comments", "array", True, "Comments")],
    ),
    ApiEndpoint(
        id="youtube-analytics-groups",
        name="Get Analytics Groups",
        description="List analytics groups",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN],
        outputs=[_param("groups", "array", True, "Analytics groups")],
    ),
    ApiEndpoint(
        id="youtube-analytics-group-items",
        name="Get Analytics Group Items",
        description="List the items of an analytics group",
        category=YOUTUBE,
        inputs=[ACCESS_TOKEN, _param("group_id", "string", True, "Group ID")],
        outputs=[_param("groupItems", "array", True, "Group items")],
    ),
    ApiEndpoint(
        id="openai-chat",
        name="AI Chat Completion",
        description="Generate a chat completion",
        category=OPENAI,
        method="POST",
        inputs=[
            _param("prompt", "string", True, "User prompt"),
            _param("system", "string", False, "System message"),
        ],
        outputs=[_param("response", "string", True, "AI generated response")],
    ),
    ApiEndpoint(
        id="openai-analysis",
        name="Content Analysis",
        description="Analyze content for sentiment, themes or keywords",
        category=OPENAI,
        method="POST",
        inputs=[
            _param("content", "string", True, "Content to analyze"),
            _param("analysis_type", "string", True, "Type of analysis", default="themes"),
        ],
        outputs=[_param("analysis", "object", True, "Analysis results")],
    ),
    ApiEndpoint(
        id="db-save-data",
        name="Save to Database",
        description="Persist data to a table",
        category=DATABASE,
        method="POST",
        inputs=[
            _param("table", "string", True, "Table name"),
            _param("data", "object", True, "Data to save"),
        ],
        outputs=[_param("saved", "object", True, "Saved data")],
    ),
    ApiEndpoint(
        id="db-query-data",
        name="Query Database",
        description="Query rows from a table",
        category=DATABASE,
        inputs=[
            _param("table", "string", True, "Table name"),
            _param("filters", "object", False, "Query filters"),
            _param("limit", "number", False, "Result limit", default=100),
        ],
        outputs=[_param("results", "array", True, "Query results")],
    ),
    ApiEndpoint(
        id="transform-data",
        name="Transform Data",
        description="Reshape data with an expression",
        category=EXTERNAL,
        inputs=[_param("data", "object", True, "Input data to transform")],
        outputs=[_param("transformed", "object", True, "Transformed data")],
    ),
    ApiEndpoint(
        id="http-request",
        name="HTTP Request",
        description="Generic HTTP request",
        category=EXTERNAL,
        inputs=[
            _param("url", "string", True, "Request URL"),
            _param("method", "string", False, "HTTP method", default="GET"),
            _param("headers", "object", False, "Request headers"),
            _param("body", "object", False, "Request body"),
        ],
        outputs=[_param("response", "object", True, "HTTP response")],
    ),
]

_ENDPOINTS_BY_ID: Dict[str, ApiEndpoint] = {endpoint.id: endpoint for endpoint in ENDPOINTS}

# Visual endpoint id -> external-call endpoint name
YOUTUBE_ENDPOINT_MAP = {
    "youtube-channels": "channels",
    "youtube-analytics": "analytics-reports",
    "youtube-videos": "videos",
    "youtube-search": "search",
    "youtube-playlists": "playlists",
    "youtube-playlist-items": "playlist-items",
    "youtube-subscriptions": "subscriptions",
    "youtube-comments": "comments",
    "youtube-comment-threads": "comment-threads",
    "youtube-captions": "captions",
    "youtube-analytics-groups": "analytics-groups",
    "youtube-analytics-group-items": "analytics-group-items",
}


def get_endpoint(endpoint_id: str) -> Optional[ApiEndpoint]:
    return _ENDPOINTS_BY_ID.get(endpoint_id)

