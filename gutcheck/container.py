"""Builds every client and service from an AppConfig."""

from gutcheck.clients.openrouter import OpenRouterClient, OpenRouterConfig
from gutcheck.clients.postgrest import PostgrestClient
from gutcheck.config import AppConfig
from gutcheck.graphs.agent import AgentOrchestrator
from gutcheck.services.bowel_insights import BowelInsightService, RuleBasedInsightGenerator
from gutcheck.services.conversation import ConversationService
from gutcheck.services.entries import EntryRepository, InMemoryEntryRepository, PostgrestEntryRepository
from gutcheck.services.health_data import (
    HealthDataProvider,
    HealthSampleSource,
    InMemoryHealthSampleSource,
    MockHealthDataProvider,
    PostgrestHealthSampleSource,
    SampleHealthDataProvider,
)
from gutcheck.services.literature import CannedLiteratureSearch, LiteratureSearch, PubMedLiteratureSearch
from gutcheck.services.session_manager import InMemorySessionManager
from gutcheck.services.stool_analysis import StoolImageAnalyzer
from gutcheck.tools.registry import ToolsRegistry
from gutcheck.utils.logging import get_logger
from gutcheck.utils.rate_limit import ChatRateLimiter

logger = get_logger(__name__)


class ServiceContainer:
    """Owns the application's clients and services for one process."""

    def __init__(
        self,
        config: AppConfig,
        llm_client: OpenRouterClient | None = None,
        entries: EntryRepository | None = None,
        literature: LiteratureSearch | None = None,
        health_data: HealthDataProvider | None = None,
    ):
        """Wire up services, using any collaborators passed in instead of building them.

        Args:
            config: Application configuration
            llm_client: OpenRouter client override
            entries: Entry repository override
            literature: Literature search override
            health_data: Health data provider override

        Raises:
            ValueError: If no client is given and OPENROUTER_API_KEY is unset
        """
        self.config = config

        self.row_store: PostgrestClient | None = None
        if config.uses_row_store and (entries is None or health_data is None):
            self.row_store = PostgrestClient(config.supabase_url, config.supabase_key)

        self.llm_client = llm_client or OpenRouterClient(
            config.openrouter_api_key,
            OpenRouterConfig(base_url=config.openrouter_base_url, model=config.chat_model),
        )
        self.entries = entries or self._build_entries()
        self.literature = literature or self._build_literature()
        self.health_data = health_data or self._build_health_data()

        self.registry = ToolsRegistry(self.entries, self.literature, self.health_data)
        self.orchestrator = AgentOrchestrator(self.llm_client, self.registry)
        self.conversation = ConversationService(self.orchestrator, self.llm_client)
        self.sessions = InMemorySessionManager(config.session_timeout_minutes)
        self.rate_limiter = ChatRateLimiter(config.chat_rate_limit)
        self.stool_analyzer = StoolImageAnalyzer(self.llm_client, self.entries, model=config.vision_model)

        if config.insights_source == "rules":
            self.insights = RuleBasedInsightGenerator()
        else:
            self.insights = BowelInsightService(self.llm_client, model=config.insights_model)

        logger.info(
            f"Services ready: entries={type(self.entries).__name__}, literature={self.literature.source}, "
            f"health_data={self.health_data.source}, insights={config.insights_source}"
        )

    def _build_entries(self) -> EntryRepository:
        if self.row_store is None:
            logger.warning("SUPABASE_URL/SUPABASE_KEY not set, using in-memory entry storage")
            return InMemoryEntryRepository()
        return PostgrestEntryRepository(self.row_store)

    def _build_literature(self) -> LiteratureSearch:
        if self.config.literature_source == "pubmed":
            return PubMedLiteratureSearch()
        return CannedLiteratureSearch()

    def _build_health_data(self) -> HealthDataProvider:
        if self.config.health_data_source == "mock":
            return MockHealthDataProvider()

        samples: HealthSampleSource
        if self.row_store is None:
            samples = InMemoryHealthSampleSource()
        else:
            samples = PostgrestHealthSampleSource(self.row_store)
        return SampleHealthDataProvider(samples)

    async def aclose(self) -> None:
        """Close network clients owned by the container."""
        await self.llm_client.aclose()
        if self.row_store is not None:
            await self.row_store.aclose()
        if isinstance(self.literature, PubMedLiteratureSearch):
            await self.literature.aclose()
