from __future__ import annotations

import pytest

from afas_gateway.arguments import (
    SERVICE_NAMESPACE,
    app_token_xml,
    encode_parameters,
    fold_arguments,
    prepare_arguments,
)
from afas_gateway.connectors import ConnectorType
from afas_gateway.errors import ArgumentValidationError


def _prepare_get(arguments: dict) -> dict:
    return prepare_arguments(ConnectorType.GET, fold_arguments(arguments), app_token="secret")


def test_fold_arguments_last_key_wins() -> None:
    assert fold_arguments({"Skip": 1, "skip": 2}) == {"skip": 2}
    assert fold_arguments({"skip": 2, "SKIP": 3}) == {"skip": 3}
    assert fold_arguments({"FiltersXml": "<x/>"}) == {"filtersxml": "<x/>"}


def test_token_is_injected_for_app_connectors() -> None:
    prepared = prepare_arguments(ConnectorType.UPDATE, {"connectortype": "KnSubject"}, app_token="abc")
    assert prepared["token"] == "<token><version>1</version><data>abc</data></token>"
    assert prepared["connectortype"] == "KnSubject"


def test_token_is_not_injected_for_token_connector() -> None:
    prepared = prepare_arguments(ConnectorType.TOKEN, {"userid": "u"}, app_token="abc")
    assert "token" not in prepared


def test_prepare_does_not_mutate_input() -> None:
    arguments = {"take": 5}
    _ = prepare_arguments(ConnectorType.GET, arguments, app_token="abc")
    assert arguments == {"take": 5}


@pytest.mark.parametrize(
    "arguments",
    [
        {"take": 0},
        {"take": "0"},
        {"take": ""},
        {"take": None},
        {},
        {"skip": 0},
        {"skip": -2},
        {"options": "<options><skip>0</skip></options>"},
    ],
)
def test_get_requires_take(arguments: dict) -> None:
    with pytest.raises(ArgumentValidationError) as exc:
        _prepare_get(arguments)
    assert exc.value.code == 41


@pytest.mark.parametrize(
    "arguments",
    [
        {"skip": -1},
        {"Skip": "-1"},
        {"options": "<skip>-1</skip>"},
        {"options": "<Options><SKIP> -1 </SKIP></Options>"},
        {"options": "<options><take>10</take></options>"},
        {"take": 50},
        {"take": "50"},
        {"Take": 1.5},
    ],
)
def test_get_accepts_paging(arguments: dict) -> None:
    prepared = _prepare_get(arguments)
    assert prepared["token"] == app_token_xml("secret")


@pytest.mark.parametrize("take", ["abc", True, "5 rows"])
def test_get_rejects_non_numeric_take(take) -> None:
    with pytest.raises(ArgumentValidationError) as exc:
        _prepare_get({"take": take})
    assert exc.value.code == 42


def test_full_dataset_override_skips_take_validation() -> None:
    prepared = _prepare_get({"skip": -1, "take": "abc"})
    assert prepared["take"] == "abc"


def test_other_connectors_are_not_paging_validated() -> None:
    prepared = prepare_arguments(ConnectorType.REPORT, {"take": "abc"}, app_token="x")
    assert prepared["take"] == "abc"


def test_encode_parameters_restores_names_and_marks_raw_xml() -> None:
    params = encode_parameters(
        {
            "connectorid": "Profit_Debtors",
            "filtersxml": "<Filters/>",
            "dataxml": "<KnSubject/>",
            "token": "<token/>",
            "take": 10,
            "connectortype": "KnSubject",
        }
    )
    by_name = {p.name: p for p in params}

    assert list(by_name) == [
        "connectorId",
        "filtersXml",
        "dataXml",
        "token",
        "take",
        "connectorType",
    ]
    assert by_name["dataXml"].raw and by_name["token"].raw
    assert not by_name["filtersXml"].raw
    assert by_name["take"].value == "10"
    assert all(p.namespace == SERVICE_NAMESPACE for p in params)


def test_encode_parameters_keeps_unknown_names_lowercase() -> None:
    params = encode_parameters(fold_arguments({"OptionsXml": "x"}))
    assert params[0].name == "optionsxml"
