"""Dependency container wiring for the application."""

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from tiny_decisions.adapters.json_file_kv_store import JsonFileKeyValueStore
from tiny_decisions.adapters.openai_suggestion_client import OpenAISuggestionClient
from tiny_decisions.adapters.supabase_kv_store import SupabaseKeyValueStore
from tiny_decisions.config import Settings
from tiny_decisions.services.lock_timer import LockTimer
from tiny_decisions.services.options import OptionRegistry
from tiny_decisions.services.scheduler import AsyncioScheduler
from tiny_decisions.services.session import DecisionSession
from tiny_decisions.services.signals import LoggingSignalSink
from tiny_decisions.services.spin import SpinEngine
from tiny_decisions.services.storage import DecisionStore, KeyValueStore
from tiny_decisions.services.suggestions import SuggestionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    decision_store: DecisionStore
    suggestion_service: SuggestionService
    session: DecisionSession
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = _build_store(resolved_settings)
    decision_store = DecisionStore(store)
    scheduler = AsyncioScheduler()
    lock_timer = LockTimer(
        store=decision_store,
        scheduler=scheduler,
        duration_ms=resolved_settings.lock_duration_ms,
        tick_interval_ms=resolved_settings.countdown_interval_ms,
    )
    session = DecisionSession(
        registry=OptionRegistry(),
        spin_engine=SpinEngine(rng=random.Random()),
        lock_timer=lock_timer,
        decision_store=decision_store,
        scheduler=scheduler,
        signals=LoggingSignalSink(),
        spin_duration_ms=resolved_settings.spin_duration_ms,
        merge_delay_ms=resolved_settings.merge_delay_ms,
    )
    openai_client = (
        OpenAISuggestionClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    suggestion_service = SuggestionService(
        client=openai_client,
        model=resolved_settings.openai_model,
    )

    async def close_resources() -> None:
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        decision_store=decision_store,
        suggestion_service=suggestion_service,
        session=session,
        close_resources=close_resources,
    )


def _build_store(settings: Settings) -> KeyValueStore:
    """Select Supabase when configured, otherwise a local JSON file."""
    if settings.uses_supabase:
        supabase_client = create_client(
            settings.supabase_url, settings.supabase_service_key
        )
        return SupabaseKeyValueStore(supabase_client, table=settings.kv_table)
    return JsonFileKeyValueStore(settings.store_path)
