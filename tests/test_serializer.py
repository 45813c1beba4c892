"""Tests for command serialization and the type registry."""

import json
from datetime import datetime
from enum import Enum

import pytest

from command_binder.core.commands import (
    Command,
    CommandRegistrationError,
    CommandRegistry,
    UnknownCommandTypeError,
    default_registry,
)
from command_binder.core.serializer import (
    CommandDeserializationError,
    deserialize_command,
    serialize_command,
)


class Priority(str, Enum):
    LOW = "low"
    HIGH = "high"


class ScheduleJob(Command):
    type_name = "tests.serializer.schedule-job"

    job_name: str
    run_at: datetime
    priority: Priority = Priority.LOW
    retry_count: int = 0


class UnnamedCommand(Command):
    pass


class TestSerializeCommand:
    """Tests for serialize_command."""

    def test_discriminator_comes_first(self):
        """Test that the type discriminator is the first key."""
        command = ScheduleJob(job_name="nightly", run_at=datetime(2024, 1, 2, 3, 4, 5))
        payload = json.loads(serialize_command(command))
        assert list(payload)[0] == "$type"
        assert payload["$type"] == "tests.serializer.schedule-job"

    def test_fields_are_camel_case(self):
        """Test that field names are written in camelCase."""
        command = ScheduleJob(job_name="nightly", run_at=datetime(2024, 1, 2), priority=Priority.HIGH)
        payload = json.loads(serialize_command(command))
        assert payload["jobName"] == "nightly"
        assert payload["runAt"] == "2024-01-02T00:00:00"
        assert payload["priority"] == "high"
        assert payload["retryCount"] == 0

    def test_indented_by_default(self):
        """Test that output is indented unless asked otherwise."""
        command = ScheduleJob(job_name="x", run_at=datetime(2024, 1, 1))
        assert "\n" in serialize_command(command)
        assert "\n" not in serialize_command(command, indent=None)

    def test_default_type_name(self):
        """Test that unnamed commands use their dotted path."""
        payload = json.loads(serialize_command(UnnamedCommand()))
        assert payload["$type"] == f"{__name__}.UnnamedCommand"


class TestDeserializeCommand:
    """Tests for deserialize_command."""

    def test_decodes_registered_command(self):
        """Test that a discriminated object becomes its command class."""
        body = json.dumps({
            "$type": "tests.serializer.schedule-job",
            "jobName": "nightly",
            "runAt": "2024-01-02T03:04:05",
            "priority": "high",
        })
        command = deserialize_command(body)
        assert isinstance(command, ScheduleJob)
        assert command.job_name == "nightly"
        assert command.priority is Priority.HIGH

    def test_accepts_field_names(self):
        """Test that snake_case field names are accepted too."""
        body = json.dumps({"$type": "tests.serializer.schedule-job", "job_name": "a", "run_at": "2024-01-01T00:00:00"})
        assert deserialize_command(body.encode("utf-8")).job_name == "a"

    @pytest.mark.parametrize("body, expected", [
        ("{}", {}),
        ('{"jobName": "x"}', {"jobName": "x"}),
        ('"text"', "text"),
        ("[1, 2]", [1, 2]),
        ("42", 42),
        ("null", None),
    ])
    def test_undiscriminated_values_pass_through(self, body, expected):
        """Test that values without a discriminator are returned as decoded."""
        assert deserialize_command(body) == expected

    def test_malformed_json(self):
        """Test that malformed JSON raises."""
        with pytest.raises(CommandDeserializationError):
            deserialize_command("{not json")

    def test_unknown_type(self):
        """Test that an unknown type name raises."""
        with pytest.raises(CommandDeserializationError, match="Unknown command type"):
            deserialize_command('{"$type": "tests.serializer.nothing"}')

    def test_invalid_fields(self):
        """Test that field validation failures raise."""
        with pytest.raises(CommandDeserializationError):
            deserialize_command('{"$type": "tests.serializer.schedule-job", "jobName": "x"}')

    def test_non_string_discriminator(self):
        """Test that a non-string discriminator raises."""
        with pytest.raises(CommandDeserializationError):
            deserialize_command('{"$type": 7}')

    def test_serialized_command_decodes_equal(self):
        """Test that a serialized command decodes back to an equal command."""
        command = ScheduleJob(job_name="n", run_at=datetime(2024, 5, 6, 7, 8), priority=Priority.HIGH, retry_count=3)
        assert deserialize_command(serialize_command(command)) == command


class TestCommandRegistry:
    """Tests for CommandRegistry."""

    def test_subclasses_register_on_definition(self):
        """Test that defining a command registers it by default."""
        assert "tests.serializer.schedule-job" in default_registry
        assert default_registry.resolve("tests.serializer.schedule-job") is ScheduleJob
        assert default_registry.name_for(ScheduleJob) == "tests.serializer.schedule-job"

    def test_type_name_is_not_inherited(self):
        """Test that a subclass of a named command gets its own name."""

        class Child(ScheduleJob):
            pass

        assert default_registry.name_for(Child) == f"{__name__}.{Child.__qualname__}"

    def test_duplicate_name_rejected(self):
        """Test that two classes cannot share one name."""
        registry = CommandRegistry()
        registry.register(ScheduleJob, "job")
        registry.register(ScheduleJob, "job")
        with pytest.raises(CommandRegistrationError):
            registry.register(UnnamedCommand, "job")

    def test_resolve_unknown(self):
        """Test that resolving an unknown name raises."""
        with pytest.raises(UnknownCommandTypeError) as exc_info:
            CommandRegistry().resolve("missing")
        assert exc_info.value.type_name == "missing"

    def test_name_for_unregistered(self):
        """Test that asking the name of an unregistered class raises."""
        with pytest.raises(UnknownCommandTypeError):
            CommandRegistry().name_for(ScheduleJob)

    def test_custom_registry(self):
        """Test that a private registry resolves only its own commands."""
        registry = CommandRegistry()
        registry.register(UnnamedCommand, "private.unnamed")
        assert len(registry) == 1
        assert list(registry) == ["private.unnamed"]
        assert isinstance(deserialize_command('{"$type": "private.unnamed"}', registry), UnnamedCommand)
        with pytest.raises(CommandDeserializationError):
            deserialize_command('{"$type": "tests.serializer.schedule-job"}', registry)
