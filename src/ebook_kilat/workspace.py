"""
Ebook workspace: the user actions of the writer screen.

Each action runs its I/O sequentially and returns the new project state.
Persistence problems never interrupt the user (the repository falls back to
local storage); generation errors propagate to the caller, which renders
user_message(error).
"""
import logging
from typing import List, Tuple

from .context import AppContext
from .errors import (
    InvalidTransitionError,
    MissingCredentialError,
    QuotaExhaustedError,
)
from .export import build_word_document, export_filename
from .generation.images import IllustrationService
from .generation.workflow import ChapterGenerator, ChapterOutcome, update_chapter_content
from .models import Ebook, EbookConfig, ProjectRow

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = (
    "Your Google AI API quota has been exhausted. "
    "Wait a few minutes or configure another API key in Settings."
)


def user_message(error: Exception) -> str:
    """Text shown to the user for a failed action."""
    if isinstance(error, QuotaExhaustedError):
        return QUOTA_MESSAGE
    if isinstance(error, MissingCredentialError):
        return str(error) or "Please configure your Google AI API key in Settings first."
    return str(error) or "An unexpected error occurred."


class EbookWorkspace:
    """Orchestrates outline generation, chapter drafting, saving and export."""

    def __init__(self, context: AppContext, repository, client,
                 generator: ChapterGenerator = None,
                 illustrations: IllustrationService = None):
        """
        Args:
            context: Application context of the acting user
            repository: ProjectRepository
            client: GenerationClient (or compatible)
            generator: Chapter state machine driver; built from ``client`` when omitted
            illustrations: Illustration service; built from ``client`` when omitted
        """
        self.context = context
        self.repository = repository
        self.client = client
        self.generator = generator or ChapterGenerator(
            client, toc_delay=context.settings.toc_delay_seconds
        )
        self.illustrations = illustrations or IllustrationService(client)

    @property
    def user_id(self) -> str:
        return self.context.require_user().user_id

    def _persist(self, ebook: Ebook) -> Ebook:
        """Save and adopt the stored id; failures are logged, never raised."""
        try:
            row = self.repository.save(self.user_id, ebook)
        except Exception as e:
            logger.error(f"Failed to save project '{ebook.title}': {e}", exc_info=True)
            return ebook
        return ebook.model_copy(update={"id": row.id, "last_updated": row.updated_at})

    # --- Projects ---

    def create_new(self) -> Ebook:
        row = self.repository.create_empty(self.user_id)
        logger.info(f"New project created: {row.id}")
        return row.to_ebook()

    def open(self, project_id: str) -> Ebook:
        return self.repository.get(project_id, self.user_id).to_ebook()

    def list(self) -> List[ProjectRow]:
        return self.repository.list(self.user_id)

    def save(self, ebook: Ebook) -> Ebook:
        return self._persist(ebook)

    def delete(self, project_id: str):
        self.repository.delete(project_id, self.user_id)
        logger.info(f"Project {project_id} deleted")

    # --- Generation ---

    def start(self, ebook: Ebook, config: EbookConfig, overwrite: bool = False) -> Ebook:
        """
        Generate the outline of a project.

        Args:
            ebook: Current project state
            config: Topic, audience, tone, goal and chapter count
            overwrite: Replace an existing outline

        Returns:
            Ebook: The project with a fresh pending outline

        Raises:
            MissingCredentialError: No API key configured
            InvalidTransitionError: The project already has an outline and overwrite is False
            MalformedResponseError, QuotaExhaustedError, GenerationAPIError
        """
        self.context.require_user()
        self.context.require_api_key()
        if ebook.outline and not overwrite:
            raise InvalidTransitionError("This project already has an outline; confirm to overwrite it.")

        config = config.model_copy(update={"language": self.context.language})
        ebook = self._persist(ebook.model_copy(update={"title": config.topic, "subtitle": config.goal}))

        outline = self.client.generate_outline(config)
        ebook = ebook.model_copy(update={
            "title": outline.title,
            "subtitle": outline.subtitle or config.goal,
            "outline": outline.chapters,
            "images": {},
        })
        return self._persist(ebook)

    def generate_chapter(self, ebook: Ebook, chapter_id: str) -> ChapterOutcome:
        """Generate one chapter and persist the resulting state (completed or error)."""
        self.context.require_user()
        self.context.require_api_key()
        outcome = self.generator.generate(ebook, chapter_id, self.context.language)
        outcome.ebook = self._persist(outcome.ebook)
        return outcome

    def update_chapter(self, ebook: Ebook, chapter_id: str, content: str) -> Ebook:
        return self._persist(update_chapter_content(ebook, chapter_id, content))

    def illustrate(self, ebook: Ebook) -> Tuple[Ebook, List[str]]:
        api_key = self.context.require_api_key()
        ebook, failed = self.illustrations.illustrate(ebook, api_key)
        return self._persist(ebook), failed

    def export(self, ebook: Ebook) -> Tuple[str, bytes]:
        """Returns (file name, document bytes)."""
        return export_filename(ebook.title), build_word_document(ebook)
