"""External content-platform API executor."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional
import requests
from requests.exceptions import RequestException
from services.worker.handlers.base import StepExecutor
from services.worker.handlers.registry import register_executor
from shared.constants import DEFAULT_ANALYTICS_DAYS, YOUTUBE_ANALYTICS_API_URL, YOUTUBE_DATA_API_URL
from shared.exceptions import StepExecutionError, TaskError
from shared.types import ExecutionContext, StepType, WorkflowStep


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


@register_executor(StepType.EXTERNAL_CALL)
class ExternalCallExecutor(StepExecutor):
    """
    Dispatches on `config.endpoint` to one fixed, bearer-authenticated GET
    against the content platform and normalises the response into flat
    objects. Requires `access_token` among the resolved inputs.
    """

    async def execute(
        self,
        step: WorkflowStep,
        inputs: Dict[str, Any],
        context: ExecutionContext
    ) -> Dict[str, Any]:
        config = self.parse_config(step)
        self.log_step(step, context, f"Executing external call: {config.endpoint}")

        access_token = inputs.get("access_token")
        if not access_token:
            raise StepExecutionError("Access token is required for external API calls")

        handlers = {
            "channels": self._fetch_channel,
            "videos": self._fetch_videos,
            "search": self._search,
            "analytics-reports": self._fetch_analytics,
            "playlist-items": self._fetch_playlist_items,
            "comment-threads": self._fetch_comment_threads,
            "captions": self._fetch_captions,
        }

        handler = handlers.get(config.endpoint)
        if handler is None:
            raise StepExecutionError(f"Unsupported external API endpoint: {config.endpoint}")

        return await handler(access_token, inputs, config.params)

    async def _get(self, url: str, access_token: str, params: Dict[str, Any]) -> Dict[str, Any]:
        session = self.services.http_session or requests
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

        try:
            response = await asyncio.to_thread(
                session.get,
                url,
                params={k: v for k, v in params.items() if v is not None},
                headers=headers,
                timeout=self.services.http_timeout
            )
        except RequestException as e:
            error = TaskError(
                error_type="NETWORK_ERROR",
                error_message=f"External API request failed: {str(e)}",
                context={"url": url, "error_class": type(e).__name__}
            )
            raise StepExecutionError.from_task_error(error) from e

        if not response.ok:
            error = TaskError(
                error_type="HTTP_ERROR",
                error_message=f"External API error: {response.status_code} {response.reason} - {response.text}",
                http_status_code=response.status_code,
                context={"url": url}
            )
            raise StepExecutionError.from_task_error(error, body=response.text)

        return response.json()

    async def _fetch_channel(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        query = {"part": params.get("part", "snippet,statistics")}
        if inputs.get("channel_id"):
            query["id"] = inputs["channel_id"]
        else:
            query["mine"] = "true"

        data = await self._get(f"{YOUTUBE_DATA_API_URL}/channels", access_token, query)
        items = data.get("items") or []
        if not items:
            raise StepExecutionError("No channel data found")

        channel = items[0]
        snippet = channel.get("snippet", {})
        statistics = channel.get("statistics", {})
        return {
            "channelData": {
                "id": channel.get("id"),
                "title": snippet.get("title"),
                "description": snippet.get("description"),
                "customUrl": snippet.get("customUrl"),
                "publishedAt": snippet.get("publishedAt"),
                "thumbnails": snippet.get("thumbnails"),
                "subscriberCount": _to_int(statistics.get("subscriberCount")),
                "videoCount": _to_int(statistics.get("videoCount")),
                "viewCount": _to_int(statistics.get("viewCount")),
            }
        }

    async def _fetch_videos(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        video_ids = _as_list(inputs.get("video_ids"))
        if not video_ids:
            return {"videoDetails": []}

        data = await self._get(f"{YOUTUBE_DATA_API_URL}/videos", access_token, {
            "part": params.get("part", "snippet,contentDetails,statistics"),
            "id": ",".join(str(video_id) for video_id in video_ids),
        })

        videos = []
        for video in data.get("items") or []:
            snippet = video.get("snippet", {})
            statistics = video.get("statistics", {})
            videos.append({
                "id": video.get("id"),
                "title": snippet.get("title"),
                "description": snippet.get("description"),
                "thumbnails": snippet.get("thumbnails"),
                "publishedAt": snippet.get("publishedAt"),
                "duration": video.get("contentDetails", {}).get("duration"),
                "viewCount": _to_int(statistics.get("viewCount")),
                "likeCount": _to_int(statistics.get("likeCount")),
                "commentCount": _to_int(statistics.get("commentCount")),
            })
        return {"videoDetails": videos}

    async def _search(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._get(f"{YOUTUBE_DATA_API_URL}/search", access_token, {
            "part": "snippet",
            "type": params.get("type", "video"),
            "maxResults": params.get("maxResults", 50),
            "q": inputs.get("query") or params.get("q"),
            "channelId": params.get("channelId"),
            "order": params.get("order"),
        })

        results = []
        for item in data.get("items") or []:
            item_id = item.get("id", {})
            snippet = item.get("snippet", {})
            results.append({
                "id": item_id.get("videoId") or item_id.get("channelId") or item_id.get("playlistId"),
                "kind": item_id.get("kind"),
                "title": snippet.get("title"),
                "description": snippet.get("description"),
                "thumbnails": snippet.get("thumbnails"),
                "publishedAt": snippet.get("publishedAt"),
                "channelId": snippet.get("channelId"),
                "channelTitle": snippet.get("channelTitle"),
            })
        return {"searchResults": results}

    async def _fetch_analytics(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        channel_id = inputs.get("channel_id")
        if not channel_id:
            raise StepExecutionError("Channel ID is required for analytics data")

        days = _to_int(params.get("days")) or DEFAULT_ANALYTICS_DAYS
        end_date = datetime.now(timezone.utc).date()
        start_date = end_date - timedelta(days=days)

        data = await self._get(f"{YOUTUBE_ANALYTICS_API_URL}/reports", access_token, {
            "ids": f"channel=={channel_id}",
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "metrics": params.get("metrics", "views,estimatedMinutesWatched,averageViewDuration"),
            "dimensions": params.get("dimensions", "video"),
            "sort": params.get("sort", "-views"),
            "maxResults": params.get("maxResults", 200),
        })
        return {
            "analyticsRows": data.get("rows") or [],
            "columnHeaders": data.get("columnHeaders") or [],
        }

    async def _fetch_playlist_items(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        playlist_id = inputs.get("playlist_id") or params.get("playlistId")
        if not playlist_id:
            raise StepExecutionError("Playlist ID is required for playlist items")

        data = await self._get(f"{YOUTUBE_DATA_API_URL}/playlistItems", access_token, {
            "part": params.get("part", "snippet,contentDetails"),
            "playlistId": playlist_id,
            "maxResults": params.get("maxResults", 50),
        })

        items = []
        for item in data.get("items") or []:
            snippet = item.get("snippet", {})
            items.append({
                "videoId": item.get("contentDetails", {}).get("videoId") or snippet.get("resourceId", {}).get("videoId"),
                "title": snippet.get("title"),
                "publishedAt": snippet.get("publishedAt"),
                "position": _to_int(snippet.get("position")),
            })
        return {"playlistItems": items}

    async def _fetch_comment_threads(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        video_id = self._require_video_id(inputs, params, "comment threads")

        data = await self._get(f"{YOUTUBE_DATA_API_URL}/commentThreads", access_token, {
            "part": "snippet",
            "videoId": video_id,
            "maxResults": params.get("maxResults", 50),
            "order": params.get("order", "relevance"),
        })

        comments = []
        for thread in data.get("items") or []:
            snippet = thread.get("snippet", {})
            top = snippet.get("topLevelComment", {})
            top_snippet = top.get("snippet", {})
            comments.append({
                "id": top.get("id") or thread.get("id"),
                "author": top_snippet.get("authorDisplayName"),
                "text": top_snippet.get("textDisplay"),
                "likeCount": _to_int(top_snippet.get("likeCount")),
                "publishedAt": top_snippet.get("publishedAt"),
                "replyCount": _to_int(snippet.get("totalReplyCount")),
            })
        return {"comments": comments}

    async def _fetch_captions(self, access_token: str, inputs: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
        video_id = self._require_video_id(inputs, params, "captions")

        data = await self._get(f"{YOUTUBE_DATA_API_URL}/captions", access_token, {
            "part": "snippet",
            "videoId": video_id,
        })

        captions = []
        for track in data.get("items") or []:
            snippet = track.get("snippet", {})
            captions.append({
                "id": track.get("id"),
                "language": snippet.get("language"),
                "name": snippet.get("name"),
                "trackKind": snippet.get("trackKind"),
            })
        return {"captions": captions}

    @staticmethod
    def _require_video_id(inputs: Dict[str, Any], params: Dict[str, Any], purpose: str) -> str:
        video_id: Optional[str] = inputs.get("video_id") or params.get("videoId")
        if not video_id:
            raise StepExecutionError(f"Video ID is required for {purpose}")
        return video_id
