from unittest.mock import MagicMock

import pytest

from classification_cache import ClassificationCache
from classifier import FALLBACK_RESULT, ClassifierAdapter, normalize_result
from models import CATCH_ALL_CATEGORY, ClassificationResult

_EMENTA = "Solicita a instalação de quebra-molas na Rua Goiânia, bairro Botafogo."


def _adapter(request_fn: MagicMock) -> ClassifierAdapter:
    return ClassifierAdapter(ClassificationCache(), request_fn=request_fn)


def test_classify_returns_normalized_result() -> None:
    request_fn = MagicMock(return_value={
        "category": "Sinalização e Trânsito",
        "locations": ["Rua Goiânia", "Botafogo"],
    })

    result = _adapter(request_fn).classify(_EMENTA)

    assert result == ClassificationResult(
        category="Sinalização e Trânsito",
        locations=("Rua Goiânia", "Botafogo"),
    )
    request_fn.assert_called_once_with(_EMENTA)


def test_second_call_hits_cache() -> None:
    request_fn = MagicMock(return_value={"category": "Pavimentação e Vias", "locations": []})
    adapter = _adapter(request_fn)

    first = adapter.classify(_EMENTA)
    second = adapter.classify(_EMENTA)

    assert first == second
    assert request_fn.call_count == 1
    assert adapter.calls == 1


def test_distinct_descriptions_are_classified_separately() -> None:
    request_fn = MagicMock(return_value={"category": "Outros", "locations": []})
    adapter = _adapter(request_fn)

    adapter.classify("a")
    adapter.classify("b")
    adapter.classify("a")

    assert request_fn.call_count == 2
    assert len(adapter.cache) == 2


def test_unknown_category_is_coerced_to_catch_all() -> None:
    request_fn = MagicMock(return_value={"category": "Saúde", "locations": ["UBS Centro"]})

    result = _adapter(request_fn).classify(_EMENTA)

    assert result.category == CATCH_ALL_CATEGORY
    assert result.locations == ("UBS Centro",)


def test_failure_returns_fallback_and_is_cached() -> None:
    request_fn = MagicMock(side_effect=RuntimeError("429 Too Many Requests"))
    adapter = _adapter(request_fn)

    first = adapter.classify(_EMENTA)
    second = adapter.classify(_EMENTA)

    assert first == FALLBACK_RESULT
    assert first.category == CATCH_ALL_CATEGORY
    assert first.locations == ()
    assert second == FALLBACK_RESULT
    assert request_fn.call_count == 1
    assert adapter.cache.get(_EMENTA) == FALLBACK_RESULT


@pytest.mark.parametrize("payload", [
    {"locations": []},
    {"category": "", "locations": []},
    {"category": "Outros"},
    {"category": "Outros", "locations": "Rua A"},
    ["Outros", []],
    None,
])
def test_malformed_payload_returns_fallback(payload: object) -> None:
    adapter = _adapter(MagicMock(return_value=payload))

    assert adapter.classify(_EMENTA) == FALLBACK_RESULT
    assert adapter.cache.get(_EMENTA) == FALLBACK_RESULT


def test_normalize_result_raises_on_missing_locations() -> None:
    with pytest.raises(ValueError, match="locations"):
        normalize_result({"category": "Outros", "locations": None})


def test_preloaded_cache_skips_upstream() -> None:
    cache = ClassificationCache()
    cache.put(_EMENTA, ClassificationResult(category="Gestão de Resíduos", locations=()))
    request_fn = MagicMock()

    result = ClassifierAdapter(cache, request_fn=request_fn).classify(_EMENTA)

    assert result.category == "Gestão de Resíduos"
    request_fn.assert_not_called()


def test_non_string_locations_are_dropped() -> None:
    request_fn = MagicMock(return_value={"category": "Outros", "locations": ["Rua A", None, 3, "Bairro B"]})
    adapter = _adapter(request_fn)

    result = adapter.classify(_EMENTA)

    assert result == ClassificationResult(category="Outros", locations=("Rua A", "Bairro B"))
    assert adapter.cache.get(_EMENTA) == result
