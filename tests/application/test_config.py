from datetime import timezone

import pytest
from pydantic import ValidationError

from deckoracle.application.config import AppConfig, resolve_config
from deckoracle.application.factory import build_services, get_study_repository
from deckoracle.domain.study.models import CardStatus
from deckoracle.infrastructure.adapters import InMemoryStudyRepository, JsonFileStudyRepository


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "json"
    assert config.data_file == mock_home / ".config/deckoracle/history.json"
    assert config.timezone == "UTC"
    assert config.learned_statuses == [CardStatus.EASY]
    assert config.card_performance_limit == 100
    assert config.dense_learning_curve is False


def test_env_overrides_defaults(mock_home, monkeypatch):
    monkeypatch.setenv("DECKORACLE_BACKEND", "memory")
    monkeypatch.setenv("DECKORACLE_PORT", "9100")
    monkeypatch.setenv("DECKORACLE_LEARNED_STATUSES", '["easy", "medium"]')

    config = resolve_config()

    assert config.backend == "memory"
    assert config.port == 9100
    assert config.mastery_policy().learned_statuses == {CardStatus.EASY, CardStatus.MEDIUM}


def test_none_overrides_are_ignored(mock_home, monkeypatch):
    monkeypatch.setenv("DECKORACLE_BACKEND", "memory")

    config = resolve_config({"backend": None, "port": 9200})

    assert config.backend == "memory"
    assert config.port == 9200


def test_toml_file_is_lowest_priority(mock_home, monkeypatch):
    config_dir = mock_home / ".config/deckoracle"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text(
        'timezone = "utc"\nport = 9000\nbackend = "memory"\n'
    )
    monkeypatch.setenv("DECKORACLE_BACKEND", "json")

    config = resolve_config({"port": 9001})

    assert config.timezone == "utc"
    assert config.backend == "json"
    assert config.port == 9001


def test_data_file_is_expanded(mock_home):
    config = resolve_config({"data_file": "~/study.json"})
    assert config.data_file == mock_home / "study.json"


@pytest.mark.parametrize("field, value", [("timezone", "Mars/Olympus"), ("backend", "sqlite")])
def test_invalid_values_rejected(mock_home, field, value):
    with pytest.raises(ValidationError):
        AppConfig(**{field: value})


def test_invalid_learned_status_rejected(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(learned_statuses=["mastered"])


def test_factory_selects_backend(mock_home, tmp_path):
    memory = get_study_repository(resolve_config({"backend": "memory"}))
    assert isinstance(memory, InMemoryStudyRepository)
    assert not isinstance(memory, JsonFileStudyRepository)

    path = tmp_path / "history.json"
    stored = get_study_repository(resolve_config({"backend": "json", "data_file": str(path)}))
    assert isinstance(stored, JsonFileStudyRepository)
    assert stored.path == path


@pytest.mark.asyncio
async def test_build_services_share_repository(mock_home, cards):
    config = resolve_config({"backend": "memory", "dense_learning_curve": True})
    study, progress = build_services(config)

    seq = await study.open_sequencer("u1", "d1", cards)
    seq.flip()
    await study.save_outcome(seq.answer("easy"))

    overview = await progress.overview("u1")
    assert overview.total_cards_studied == 1
    assert progress._calc.tz is timezone.utc
