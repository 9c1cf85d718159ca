"""Built-in workflow definitions seeded into the repository at start-up."""

import logging
from typing import List
from shared.types import StoredWorkflow, Workflow

logger = logging.getLogger(__name__)

CHANNEL_OVERVIEW = {
    "id": "channel-overview",
    "name": "Channel Overview Analysis",
    "version": "1.0.0",
    "description": "Fetch and analyze basic channel information with AI greeting",
    "triggers": [{"type": "manual", "config": {}}],
    "steps": [
        {
            "id": "fetch-channel",
            "type": "external-call",
            "name": "Fetch Channel Data",
            "config": {"endpoint": "channels", "params": {"part": "snippet,statistics"}},
            "inputs": {
                "access_token": "$input.access_token",
                "channel_id": "$input.channel_id",
            },
            "outputs": ["channelData"],
            "dependencies": [],
        },
        {
            "id": "generate-greeting",
            "type": "llm-completion",
            "name": "Generate Channel Greeting",
            "config": {
                "model": "gpt-4o-mini",
                "prompt_key": "collection_greeting",
                "system": "You are Neria, a warm, supportive YouTube coach.",
                "max_tokens": 120,
            },
            "inputs": {
                "given_name": "$input.given_name",
                "channel_title": "$steps.fetch-channel.channelData.title",
                "subscriber_count": "$steps.fetch-channel.channelData.subscriberCount",
                "video_count": "$steps.fetch-channel.channelData.videoCount",
            },
            "outputs": ["greeting"],
            "dependencies": ["fetch-channel"],
        },
        {
            "id": "format-output",
            "type": "transform",
            "name": "Format Channel Overview",
            "config": {
                "script": (
                    '{"result": {"channel": {'
                    '"id": channel_data.id, "title": channel_data.title, '
                    '"description": channel_data.description, '
                    '"subs": channel_data.subscriberCount, '
                    '"subs_display": format_number(channel_data.subscriberCount), '
                    '"views": channel_data.viewCount, "videoCount": channel_data.videoCount, '
                    '"publishedAt": channel_data.publishedAt}, '
                    '"greeting": greeting}}'
                )
            },
            "inputs": {
                "channel_data": "$steps.fetch-channel.channelData",
                "greeting": "$steps.generate-greeting.greeting",
            },
            "outputs": ["result"],
            "dependencies": ["fetch-channel", "generate-greeting"],
        },
    ],
}

COMPETITOR_ANALYSIS = {
    "id": "competitor-analysis",
    "name": "Competitor Analysis",
    "version": "1.0.0",
    "description": "Analyze competitor channels and compare with your performance",
    "triggers": [{"type": "manual", "config": {}}],
    "steps": [
        {
            "id": "search-competitors",
            "type": "external-call",
            "name": "Search Competitor Channels",
            "config": {
                "endpoint": "search",
                "params": {"type": "channel", "maxResults": 10, "order": "relevance"},
            },
            "inputs": {
                "access_token": "$input.access_token",
                "query": "$input.search_query",
            },
            "outputs": ["searchResults"],
            "dependencies": [],
        },
        {
            "id": "fetch-competitor-videos",
            "type": "external-call",
            "name": "Get Competitor Top Videos",
            "config": {
                "endpoint": "search",
                "params": {"type": "video", "maxResults": 20, "order": "viewCount"},
            },
            "inputs": {
                "access_token": "$input.access_token",
                "query": "$input.search_query",
            },
            "outputs": ["searchResults"],
            "dependencies": ["search-competitors"],
        },
        {
            "id": "analyze-competitor-strategies",
            "type": "llm-completion",
            "name": "Analyze Competitor Strategies",
            "config": {
                "model": "gpt-4o-mini",
                "system_key": "competitor_strategy_system",
                "max_tokens": 200,
            },
            "inputs": {
                "prompt": (
                    "Analyze these competitor video titles and identify successful patterns: "
                    "{{video_titles}}"
                ),
                "video_titles": "$steps.fetch-competitor-videos.searchResults.*.title",
            },
            "outputs": ["strategyAnalysis"],
            "dependencies": ["fetch-competitor-videos"],
        },
        {
            "id": "compare-performance",
            "type": "transform",
            "name": "Compare Performance Metrics",
            "config": {
                "script": (
                    '{"performanceComparison": {'
                    '"myChannel": my_channel_stats or {}, '
                    '"competitors": sort_by(competitors, "title"), '
                    '"insights": {"totalAnalyzed": competitors | length, '
                    '"channelTitles": competitors | map(attribute="title") | list}}}'
                )
            },
            "inputs": {
                "competitors": "$steps.search-competitors.searchResults",
                "my_channel_stats": "$input.my_channel_stats",
            },
            "outputs": ["performanceComparison"],
            "dependencies": ["search-competitors"],
        },
        {
            "id": "generate-recommendations",
            "type": "llm-completion",
            "name": "Generate Strategy Recommendations",
            "config": {
                "model": "gpt-4o-mini",
                "system_key": "growth_recommendations_system",
                "max_tokens": 150,
            },
            "inputs": {
                "prompt": (
                    "Based on this competitor analysis: {{strategy_analysis}} and performance comparison: "
                    "{{performance_data}}, provide 3 actionable recommendations for improvement."
                ),
                "strategy_analysis": "$steps.analyze-competitor-strategies.strategyAnalysis",
                "performance_data": "$steps.compare-performance.performanceComparison",
            },
            "outputs": ["recommendations"],
            "dependencies": ["analyze-competitor-strategies", "compare-performance"],
        },
    ],
}

BUILTIN_WORKFLOWS = [CHANNEL_OVERVIEW, COMPETITOR_ANALYSIS]


def builtin_workflows() -> List[Workflow]:
    return [Workflow.model_validate(definition) for definition in BUILTIN_WORKFLOWS]


def seed_builtin_workflows(repository) -> List[StoredWorkflow]:
    """Upserts each built-in definition under its id as key; existing entries are refreshed"""
    seeded = []
    for workflow in builtin_workflows():
        stored = repository.upsert(StoredWorkflow(
            id=workflow.id,
            key=workflow.id,
            name=workflow.name,
            description=workflow.description,
            version=workflow.version,
            definition=workflow,
        ))
        seeded.append(stored)

    logger.info("Seeded built-in workflows", extra={"workflow_ids": [w.id for w in seeded]})
    return seeded
