"""
Commit message generation pipeline.

    cache lookup -> secret scan -> classification -> prompt -> dispatch
        -> trim -> cache write -> convention validation

Side steps (cache, scan, team rules, audit) are best-effort: their failures
are logged and the run continues. Dispatch failures, configuration errors and
timeouts propagate to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from functools import partial
from typing import List, Optional

from ..analysis.classifier import Classification, Classifier
from ..audit.logger import STATUS_ERROR, STATUS_SUCCESS, AuditEvent, AuditLogger, estimate_tokens
from ..commit.cache import CommitCache
from ..commit.validator import DEFAULT_CONVENTIONAL_RULE, ConventionRule, validate_commit_message
from ..config import SecretStore, Settings
from ..errors import (
    CommitExecutionError,
    GenerationTimeoutError,
    NoChangesError,
    RateLimitTimeoutError,
    TeamConfigError,
    VersionControlError,
)
from ..llm.dispatcher import ProviderDispatcher
from ..prompts.builder import PromptBuilder
from ..security.scanner import Finding, SecretScanner
from ..team.config import TeamManager, detect_team_from_remote
from ..vcs.models import ChangeSet, RepositoryContext, VersionControl

logger = logging.getLogger(__name__)


@dataclass
class GenerationOptions:
    """Per-run switches"""
    use_cache: bool = True
    force_regenerate: bool = False
    skip_scan: bool = False
    max_tokens: Optional[int] = None
    timeout: Optional[float] = None
    staged: bool = True
    team: Optional[str] = None


@dataclass
class GenerationResult:
    """Outcome of one generation run"""
    message: str
    used_provider: str
    from_cache: bool = False
    findings: List[Finding] = field(default_factory=list)
    classification: Optional[Classification] = None
    convention_errors: List[str] = field(default_factory=list)
    fallback_used: bool = False
    attempts: int = 0


class GenerationOrchestrator:
    """
    Composes classifier, cache, scanner, dispatcher and validator into the
    generation pipeline.

    Example:
        settings = load_settings()
        async with GenerationOrchestrator(settings) as orchestrator:
            result = await orchestrator.generate_for_repository(GitRepository("."))
            print(result.message)
    """

    def __init__(
        self,
        settings: Settings,
        dispatcher: Optional[ProviderDispatcher] = None,
        cache: Optional[CommitCache] = None,
        scanner: Optional[SecretScanner] = None,
        team_manager: Optional[TeamManager] = None,
        audit: Optional[AuditLogger] = None,
        secret_store: Optional[SecretStore] = None
    ):
        self.settings = settings
        self.dispatcher = dispatcher or ProviderDispatcher.from_settings(settings, secret_store)
        self.cache = cache or CommitCache(
            settings.cache_dir,
            ttl_seconds=settings.cache_ttl_seconds,
            enabled=settings.cache_enabled,
        )
        self.scanner = scanner or SecretScanner()
        self.team_manager = team_manager or TeamManager(settings.teams_dir)
        self.audit = audit or AuditLogger(settings.audit_dir, enabled=settings.audit_logging)

    async def generate_commit_message(
        self,
        change_set: ChangeSet,
        context: Optional[RepositoryContext] = None,
        options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        """
        Generate a commit message for a change set.

        Args:
            change_set: Diff and changed files
            context: Repository context for the prompt
            options: Per-run switches

        Returns:
            GenerationResult

        Raises:
            NoChangesError: If the diff is empty
            ConfigurationError, UnsupportedProviderError: Provider setup problems
            TransientProviderError: If every attempt (and the fallback) failed
            RateLimitTimeoutError: If the rate-limit wait exceeded its bound
            GenerationTimeoutError: If options.timeout elapsed
        """
        options = options or GenerationOptions()
        context = context or RepositoryContext()
        run = self._generate(change_set, context, options)

        if options.timeout is None:
            return await run

        try:
            return await asyncio.wait_for(run, timeout=options.timeout)
        except (RateLimitTimeoutError, GenerationTimeoutError):
            raise
        except asyncio.TimeoutError as e:
            self._audit_generation(context, self.settings.provider.name, STATUS_ERROR, error="timeout")
            raise GenerationTimeoutError(
                f"Commit message generation timed out after {options.timeout:.1f}s"
            ) from e

    async def _generate(
        self,
        change_set: ChangeSet,
        context: RepositoryContext,
        options: GenerationOptions
    ) -> GenerationResult:
        diff_text = change_set.diff_text
        if not diff_text or not diff_text.strip():
            raise NoChangesError("No changes to describe")

        rules, team_template = self._load_team(options.team)

        # 1. Cache
        if options.use_cache and not options.force_regenerate:
            cached = self.cache.get(diff_text)
            if cached is not None:
                logger.info(f"Using cached commit message (provider {cached.provider or 'unknown'})")
                return GenerationResult(
                    message=cached.message,
                    used_provider=cached.provider,
                    from_cache=True,
                    findings=self._scan(diff_text, options),
                    convention_errors=self._validate(cached.message, rules),
                )

        # 2. Secret scan
        findings = self._scan(diff_text, options)

        # 3. Classification
        classification = None
        commit_type = ""
        commit_scope = ""
        if self.settings.smart_detection:
            suggestions = Classifier(context.recent_messages).classify(diff_text, change_set.files)
            if suggestions:
                classification = suggestions[0]
                if classification.confidence > self.settings.classification_threshold:
                    commit_type = classification.type
                    commit_scope = classification.scope
                logger.debug(
                    f"Classified as {classification.type} "
                    f"(confidence {classification.confidence:.2f}, scope '{classification.scope}')"
                )

        # 4. Prompt
        builder = PromptBuilder(team_template or self.settings.template)
        prompt = builder.build(
            diff_text,
            context,
            commit_type=commit_type,
            commit_scope=commit_scope,
            files=change_set.file_paths,
        )

        # 5. Dispatch
        spec = self.settings.provider
        try:
            response = await self.dispatcher.generate(spec, prompt, options.max_tokens)
        except Exception as e:
            self._audit_generation(context, spec.name, STATUS_ERROR, prompt=prompt, error=str(e))
            raise

        # 6. Trim
        message = response.text.strip()
        if not message:
            logger.warning(f"{response.provider} returned an empty commit message")

        # 7. Cache write
        if options.use_cache and message:
            self.cache.set(diff_text, message, response.provider, change_set.stats())

        self._audit_generation(context, response.provider, STATUS_SUCCESS, prompt=prompt, message=message)

        # 8. Conventions
        return GenerationResult(
            message=message,
            used_provider=response.provider,
            from_cache=False,
            findings=findings,
            classification=classification,
            convention_errors=self._validate(message, rules),
            fallback_used=response.fallback_used,
            attempts=response.attempts,
        )

    def _scan(self, diff_text: str, options: GenerationOptions) -> List[Finding]:
        if options.skip_scan or not self.settings.scan_for_sensitive_data:
            return []
        return self.scanner.scan(diff_text)

    def _load_team(self, team: Optional[str]):
        """
        Convention rules and template override for team mode.

        Returns:
            (rules, template) where rules is None outside team mode
        """
        if not self.settings.team_enabled:
            return None, None

        team = team or self.settings.team_name
        if not team:
            logger.warning("Team mode is enabled but no team is configured")
            return [DEFAULT_CONVENTIONAL_RULE], None

        try:
            rules = self.team_manager.load_rules(team)
            template = self.team_manager.load_template(team)
        except TeamConfigError as e:
            logger.warning(f"Could not load team '{team}', continuing without team rules: {e}")
            return [], None

        return rules or [DEFAULT_CONVENTIONAL_RULE], template

    @staticmethod
    def _validate(message: str, rules: Optional[List[ConventionRule]]) -> List[str]:
        if rules is None:
            return []
        result = validate_commit_message(message, rules)
        if not result.valid:
            logger.info(f"Commit message violates {len(result.errors)} team convention(s)")
        return result.errors

    def _audit_generation(
        self,
        context: RepositoryContext,
        provider: str,
        status: str,
        prompt: str = "",
        message: str = "",
        error: str = ""
    ) -> None:
        self.audit.record_event(AuditEvent(
            action="generate",
            status=status,
            provider=provider,
            repo_name=context.repo_name,
            tokens_used=estimate_tokens(prompt, message),
            error=error,
        ))

    async def generate_for_repository(
        self,
        vcs: VersionControl,
        options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        """
        Generate a commit message for the pending changes of a repository.

        Raises:
            NoChangesError: If there is nothing staged (or changed)
            VersionControlError: If the diff cannot be read
        """
        options = options or GenerationOptions()
        loop = asyncio.get_running_loop()

        diff_text = await loop.run_in_executor(None, vcs.get_changed_diff, options.staged)
        if not diff_text or not diff_text.strip():
            where = "staged " if options.staged else ""
            raise NoChangesError(f"No {where}changes to commit")

        files = await loop.run_in_executor(None, vcs.get_changed_files)

        try:
            context = await loop.run_in_executor(None, vcs.get_repository_context)
        except VersionControlError as e:
            logger.warning(f"Could not read repository context: {e}")
            context = RepositoryContext()

        if self.settings.team_enabled and not options.team and not self.settings.team_name:
            remote = await loop.run_in_executor(None, vcs.get_remote_url)
            detected = detect_team_from_remote(remote)
            if detected:
                logger.info(f"Detected team '{detected}' from remote")
                options = replace(options, team=detected)

        change_set = ChangeSet(diff_text=diff_text, files=tuple(files))
        return await self.generate_commit_message(change_set, context, options)

    async def commit(self, vcs: VersionControl, message: str) -> None:
        """
        Create a commit with message.

        Raises:
            CommitExecutionError: If the commit fails
        """
        loop = asyncio.get_running_loop()
        event = AuditEvent(action="commit")

        try:
            await loop.run_in_executor(None, partial(vcs.commit, message))
        except VersionControlError as e:
            event.status = STATUS_ERROR
            event.error = str(e)
            self.audit.record_event(event)
            if isinstance(e, CommitExecutionError):
                raise
            raise CommitExecutionError(f"Failed to commit: {e}") from e

        self.audit.record_event(event)
        logger.info("Commit created")

    async def close(self) -> None:
        await self.dispatcher.close()

    async def __aenter__(self) -> "GenerationOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
