import logging
from datetime import datetime

import pytest
from pydantic import ValidationError

from journal_viewer.journal.query import QuerySpecification, is_valid_priority


class TestArguments:
    """to_arguments() output"""

    def test_default_spec_queries_current_boot(self):
        spec = QuerySpecification.default()
        assert spec.to_arguments() == ["--boot=0"]

    def test_empty_spec_has_no_arguments(self):
        assert QuerySpecification().to_arguments() == []

    def test_arguments_are_deterministic(self):
        """
        Tests that equal specifications always produce equal argument lists.
        """
        first = QuerySpecification(since="yesterday", filters={"unit": ["a.service", "b.service"], "priority": "err"})
        second = QuerySpecification(filters={"priority": "err", "unit": ["a.service", "b.service"]}, since="yesterday")

        assert first == second
        assert first.to_arguments() == second.to_arguments()
        assert first.to_arguments() == first.to_arguments()

    def test_full_spec_uses_fixed_order(self):
        spec = QuerySpecification(
            since=datetime(2024, 3, 1, 10, 0, 0),
            until="now",
            filters={
                "match": ["_EXE=/usr/sbin/sshd"],
                "priority": "err",
                "identifier": "sudo",
                "unit": ["sshd.service", "cron.service"],
                "boot": "-1",
            },
        )

        assert spec.to_arguments() == [
            "--since=2024-03-01 10:00:00",
            "--until=now",
            "--boot=-1",
            "--unit=sshd.service",
            "--unit=cron.service",
            "--identifier=sudo",
            "--priority=err",
            "_EXE=/usr/sbin/sshd",
        ]

    def test_priority_only(self):
        args = QuerySpecification(filters={"priority": "err"}).to_arguments()

        assert "--priority=err" in args
        assert not any(arg.startswith("--unit") for arg in args)

    @pytest.mark.parametrize("filters", [
        {"unit": ""},
        {"unit": None},
        {"unit": []},
        {"priority": "   "},
        {"boot": None, "identifier": [""]},
    ])
    def test_unset_filters_are_omitted(self, filters):
        assert QuerySpecification(filters=filters).to_arguments() == []

    def test_blank_bounds_are_unset(self):
        spec = QuerySpecification(since="", until="   ")

        assert spec.since is None
        assert spec.until is None
        assert spec.to_arguments() == []

    def test_duplicate_values_are_dropped(self):
        spec = QuerySpecification(filters={"unit": ["a.service", "a.service"]})
        assert spec.to_arguments() == ["--unit=a.service"]


class TestValidation:

    def test_unknown_filter_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            spec = QuerySpecification(filters={"colour": "blue", "unit": "a.service"})

        assert spec.filters == {"unit": ("a.service",)}
        assert "Ignoring unknown journal filter 'colour'" in caplog.text

    @pytest.mark.parametrize("value,valid", [
        ("err", True),
        ("7", True),
        ("0", True),
        ("warning..emerg", True),
        ("3..0", True),
        ("9", False),
        ("error", False),
        ("err..", False),
        ("²", False),
        ("3..²", False),
    ])
    def test_priority_values(self, value, valid):
        assert is_valid_priority(value) is valid

    def test_invalid_priority_is_dropped(self):
        assert QuerySpecification(filters={"priority": "loud"}).to_arguments() == []

    def test_non_ascii_digit_priority_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            spec = QuerySpecification(filters={"priority": "²"})

        assert spec.to_arguments() == []
        assert "Ignoring invalid priority" in caplog.text

    def test_invalid_match_is_dropped(self):
        spec = QuerySpecification(filters={"match": ["not a match", "_PID=1"]})
        assert spec.to_arguments() == ["_PID=1"]

    def test_single_value_filter_keeps_first(self):
        spec = QuerySpecification(filters={"boot": ["0", "-1"]})
        assert spec.filters["boot"] == ("0",)

    def test_filters_must_be_a_mapping(self):
        with pytest.raises(ValidationError):
            QuerySpecification(filters=["unit"])

    def test_spec_is_frozen(self):
        spec = QuerySpecification.default()
        with pytest.raises(ValidationError):
            spec.since = "yesterday"

    def test_filters_cannot_be_changed_in_place(self):
        spec = QuerySpecification.default()

        with pytest.raises(TypeError):
            spec.filters["unit"] = ("sshd.service",)

        assert spec.to_arguments() == ["--boot=0"]

    def test_caller_mapping_is_not_shared(self):
        filters = {"unit": "a.service"}
        spec = QuerySpecification(filters=filters)

        filters["unit"] = "b.service"

        assert spec.filters == {"unit": ("a.service",)}

    def test_equal_specs_hash_equal(self):
        """
        Tests that specifications can be used as set members and dict keys.
        """
        first = QuerySpecification(since="yesterday", filters={"unit": ["a.service", "b.service"], "boot": "0"})
        second = QuerySpecification(since="yesterday", filters={"boot": "0", "unit": ["a.service", "b.service"]})

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second, QuerySpecification.default()}) == 2


class TestDescriptions:

    def test_default_descriptions(self):
        spec = QuerySpecification.default()

        assert spec.interval_description() == "Since system's boot"
        assert spec.filters_description() == "No additional filters"

    @pytest.mark.parametrize("kwargs,expected", [
        ({}, "All entries in the journal"),
        ({"since": "yesterday"}, "Since yesterday"),
        ({"until": datetime(2024, 3, 1, 12, 0, 0)}, "Until 2024-03-01 12:00:00"),
        (
            {"since": datetime(2024, 3, 1, 10, 0, 0), "until": datetime(2024, 3, 1, 12, 0, 0)},
            "Between 2024-03-01 10:00:00 and 2024-03-01 12:00:00",
        ),
        ({"filters": {"boot": "-1"}}, "During the previous boot"),
        ({"filters": {"boot": "abc123"}, "since": "-1h"}, "During boot abc123, since -1h"),
    ])
    def test_interval_description(self, kwargs, expected):
        assert QuerySpecification(**kwargs).interval_description() == expected

    def test_filters_description(self):
        spec = QuerySpecification(filters={
            "priority": "err",
            "unit": ["sshd.service", "cron.service"],
            "boot": "0",
        })
        assert spec.filters_description() == "Unit: sshd.service, cron.service; Priority: err"

    def test_journalctl_args_are_shell_quoted(self):
        spec = QuerySpecification(since="2024-03-01 10:00", filters={"unit": "sshd.service"})
        assert spec.journalctl_args() == "'--since=2024-03-01 10:00' --unit=sshd.service"

    def test_str_combines_descriptions(self):
        assert str(QuerySpecification.default()) == "Since system's boot (No additional filters)"
