"""
Service Factory
Centralizes the logic for selecting the repository adapter and wiring services.
"""

import logging

from deckoracle.application.config import AppConfig
from deckoracle.application.progress import ProgressCalculator, ProgressService
from deckoracle.application.study import StudyService
from deckoracle.application.utils.time import get_timezone
from deckoracle.domain.study.ports import StudyRepository
from deckoracle.infrastructure.adapters import InMemoryStudyRepository, JsonFileStudyRepository

logger = logging.getLogger(__name__)


def get_study_repository(config: AppConfig) -> StudyRepository:
    """
    Returns the appropriate StudyRepository implementation based on config.
    """
    if config.backend == "memory":
        logger.info("Storage: in-memory (history is discarded on exit)")
        return InMemoryStudyRepository()

    logger.info(f"Storage: {config.data_file}")
    return JsonFileStudyRepository(config.data_file)


def build_services(
    config: AppConfig, repo: StudyRepository | None = None
) -> tuple[StudyService, ProgressService]:
    """Wire a StudyService and ProgressService over one shared repository."""
    repo = repo or get_study_repository(config)
    calculator = ProgressCalculator(
        tz=get_timezone(config.timezone),
        policy=config.mastery_policy(),
    )
    study = StudyService(repo)
    progress = ProgressService(
        repo,
        calculator=calculator,
        dense_learning_curve=config.dense_learning_curve,
        card_performance_limit=config.card_performance_limit,
    )
    return study, progress
