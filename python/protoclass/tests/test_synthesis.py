"""Tests for create_class(): initializer, accessors, inheritance and wire form."""

from __future__ import annotations

import json
from datetime import date

import msgpack
import pytest

from protoclass import create_class
from protoclass.core.callbacks import clear_callbacks, noop, register_callback
from protoclass.exceptions import InvalidSignature, ProtoclassError, TypeMismatch
from protoclass.models.base import GeneratedObject, instance_of
from protoclass.models.registry import clear_registry, get_class, registered_classes


@pytest.fixture(autouse=True)
def cleanup_registry():
    """Clean up registries before and after each test."""
    clear_registry()
    clear_callbacks()
    yield
    clear_registry()
    clear_callbacks()


PERSON = {
    "className": "Person",
    "properties": [
        {"name": "name", "type": "varchar", "length": 40},
        {"name": "born", "type": "date"},
    ],
}


@pytest.fixture
def Person():
    return create_class(PERSON)


@pytest.fixture
def Worker(Person):
    return create_class(
        {
            "className": "Worker",
            "extends": Person.__config__,
            "properties": [
                {"name": "salary", "type": "decimal", "length": 10, "decimals": 2},
                {"name": "tags", "type": "array", "arrayOf": {"type": "int"}},
            ],
        }
    )


class TestClassShape:
    """Test the generated class itself."""

    def test_registered_under_tag(self, Person):
        assert Person.__name__ == "Person"
        assert Person.__class_tag__ == "Person"
        assert get_class("Person") is Person
        assert issubclass(Person, GeneratedObject)

    def test_property_metadata(self, Worker):
        assert [prop.name for prop in Worker.__properties__] == ["name", "born", "salary", "tags"]
        assert Worker.__property_names__ == {"name", "born", "salary", "tags"}

    def test_ancestor_tags(self, Person, Worker):
        assert Person.__ancestor_tags__ == {"Person"}
        assert Worker.__ancestor_tags__ == {"Person", "Worker"}
        assert issubclass(Worker, Person)

    def test_latest_synthesis_wins(self, Person):
        again = create_class(PERSON)
        assert again is not Person
        assert get_class("Person") is again

    def test_parent_synthesized_on_demand(self):
        create_class(
            {
                "className": "Worker",
                "extends": PERSON,
                "properties": [{"name": "salary", "type": "float"}],
            }
        )
        assert set(registered_classes()) == {"Person", "Worker"}
        assert issubclass(get_class("Worker"), get_class("Person"))

    def test_no_persistence_without_table(self, Person):
        assert not hasattr(Person, "insert")
        assert not hasattr(Person, "load")


class TestAccessors:
    """Test the zero/one-argument accessor convention."""

    def test_get_and_set(self, Person):
        person = Person({"name": "Alice"})
        assert person.name() == "Alice"
        assert person.name("Bob") is person
        assert person.name() == "Bob"

    def test_fluent_chaining(self, Person):
        person = Person().name("Carol").born("2000-02-29")
        assert person.born() == date(2000, 2, 29)

    def test_invalid_arity(self, Person):
        with pytest.raises(InvalidSignature):
            Person().name("a", "b")

    def test_setter_validates(self, Person):
        person = Person({"name": "Alice"})
        with pytest.raises(TypeMismatch):
            person.name(["Alice"])
        assert person.name() == "Alice"

    def test_null_handling(self, Person):
        person = Person()
        with pytest.raises(TypeMismatch):
            person.name(None)
        assert person.born(None).born() is None

    def test_get_transform(self):
        Tagged = create_class(
            {
                "className": "Tagged",
                "properties": [
                    {"name": "label", "type": "text", "getTransform": lambda v, p: v.upper()}
                ],
            }
        )
        tagged = Tagged({"label": "draft"})
        assert tagged.label() == "DRAFT"
        assert tagged.to_dict()["label"] == "draft"

    def test_array_accessor_mutation_validates(self, Worker):
        worker = Worker({"tags": [1, 2]})
        worker.tags().append(3)
        assert worker.tags() == [1, 2, 3]
        with pytest.raises(TypeMismatch):
            worker.tags().append("x")


class TestInitializer:
    """Test seed handling and default precedence."""

    def test_default_precedence(self):
        Counter = create_class(
            {
                "className": "Counter",
                "properties": [
                    {"name": "configured", "type": "int", "default": 3},
                    {"name": "builtin", "type": "int"},
                ],
            }
        )
        counter = Counter()
        assert counter.configured() == 3
        assert counter.builtin() == 0
        assert Counter({"configured": 7}).configured() == 7

    def test_kind_defaults(self, Person):
        person = Person()
        assert person.name() == ""
        assert person.born() == date(1970, 1, 1)

    def test_defaults_are_coerced(self):
        Stamp = create_class(
            {"className": "Stamp", "properties": [{"name": "day", "type": "date", "default": "2024-03-01"}]}
        )
        assert Stamp().day() == date(2024, 3, 1)

    def test_invalid_default_fails(self):
        Broken = create_class(
            {"className": "Broken", "properties": [{"name": "n", "type": "int", "default": "x"}]}
        )
        with pytest.raises(TypeMismatch):
            Broken()

    def test_mutable_defaults_not_shared(self):
        Bag = create_class(
            {
                "className": "Bag",
                "properties": [
                    {"name": "items", "type": "array", "arrayOf": {"type": "int"}, "default": [1]},
                    {"name": "meta", "type": "json"},
                ],
            }
        )
        first, second = Bag(), Bag()
        first.items().append(2)
        first.meta()["k"] = "v"
        assert second.items() == [1]
        assert second.meta() == {}

    def test_parent_properties_initialized_first(self):
        order: list[str] = []

        def recorder(value, prop):
            order.append(prop.name)
            return value

        Base = create_class(
            {"className": "Base", "properties": [{"name": "a", "type": "int", "setTransform": recorder}]}
        )
        Child = create_class(
            {
                "className": "Child",
                "extends": Base.__config__,
                "properties": [{"name": "b", "type": "int", "setTransform": recorder}],
            }
        )
        Child({"a": 1, "b": 2})
        assert order == ["a", "b"]

    def test_inherited_seed_values(self, Worker):
        worker = Worker({"name": "Bob", "salary": 1200, "tags": [5]})
        assert worker.name() == "Bob"
        assert worker.salary() == 1200.0
        assert worker.tags() == [5]

    def test_init_reinitializes(self, Person):
        person = Person({"name": "Alice"})
        assert person.init({"name": "Zed"}) is person
        assert person.name() == "Zed"

    def test_json_seed(self, Person):
        assert Person('{"name": "Carol", "born": "1999-12-31"}').born() == date(1999, 12, 31)

    def test_invalid_json_seed(self, Person):
        with pytest.raises(InvalidSignature):
            Person("{not json")
        with pytest.raises(InvalidSignature):
            Person("[1, 2]")

    def test_unsupported_seed(self, Person):
        with pytest.raises(InvalidSignature):
            Person(42)

    def test_marked_keys(self, Person):
        assert Person({"_name": "Eve"}).name() == "Eve"
        assert Person({"_name": "Eve", "name": "Ann"}).name() == "Ann"

    def test_unknown_keys_ignored(self, Person):
        assert Person({"_other": 1, "extra": 2}).name() == ""

    def test_wire_version_checked(self, Person):
        with pytest.raises(InvalidSignature):
            Person({"__class__": "Person", "__version__": 2, "name": "X"})

    def test_callback_property(self):
        def greet(name):
            return f"Hello {name}"

        register_callback("greet", greet)
        Handler = create_class(
            {"className": "Handler", "properties": [{"name": "on_event", "type": "function"}]}
        )
        assert Handler().on_event() is noop
        assert Handler({"on_event": "greet"}).on_event()("Bob") == "Hello Bob"


class TestPlainStructure:
    """Test to_dict / to_json / to_wire and rebuilding from them."""

    def test_to_dict(self, Person):
        person = Person({"name": "Alice", "born": date(1990, 4, 1)})
        assert person.to_dict() == {
            "__class__": "Person",
            "__version__": 1,
            "name": "Alice",
            "born": date(1990, 4, 1),
        }

    def test_marked_dict(self, Person):
        marked = Person({"name": "Alice"}).to_dict(marked=True)
        assert "_name" in marked and "name" not in marked
        assert Person(marked).name() == "Alice"

    def test_json_round_trip(self, Worker):
        worker = Worker({"name": "Bob", "born": "1980-01-02", "salary": 10.5, "tags": [1, 2]})
        payload = json.loads(worker.to_json())
        assert payload["born"] == "1980-01-02"
        assert Worker(worker.to_json()).to_dict() == worker.to_dict()

    def test_wire_round_trip(self, Worker):
        worker = Worker({"name": "Bob", "tags": [3]})
        data = worker.to_wire()
        assert msgpack.unpackb(data, raw=False)["__class__"] == "Worker"
        assert Worker(data).to_dict() == worker.to_dict()

    def test_invalid_wire_bytes(self, Person):
        with pytest.raises(InvalidSignature):
            Person(b"\xc1")

    def test_repr(self, Person):
        assert repr(Person({"name": "Al"})).startswith("Person(name='Al'")


class TestNestedObjects:
    """Test nested-object properties in memory."""

    def test_instance_constraint_accepts_subclasses(self, Person, Worker):
        Team = create_class({"className": "Team", "properties": [{"name": "leader", "instanceOf": "Person"}]})
        team = Team()
        assert team.leader() is None
        worker = Worker({"name": "Bob"})
        assert team.leader(worker).leader() is worker
        assert instance_of(worker, "Person")

    def test_exact_type_constraint(self, Person, Worker):
        Desk = create_class({"className": "Desk", "properties": [{"name": "owner", "type": "Person"}]})
        Desk().owner(Person())
        with pytest.raises(TypeMismatch):
            Desk().owner(Worker())

    def test_object_kind_accepts_any_generated_instance(self, Person):
        Box = create_class({"className": "Box", "properties": [{"name": "content", "type": "object"}]})
        assert Box().content(Person()).content().name() == ""
        with pytest.raises(TypeMismatch):
            Box().content({"plain": "dict"})

    def test_rejects_other_classes(self, Person):
        Team = create_class({"className": "Team", "properties": [{"name": "leader", "instanceOf": "Person"}]})
        Other = create_class({"className": "Other", "properties": []})
        with pytest.raises(TypeMismatch):
            Team().leader(Other())
        with pytest.raises(TypeMismatch):
            Team().leader("Alice")

    def test_rebuilt_from_tagged_dict(self, Person):
        Team = create_class({"className": "Team", "properties": [{"name": "leader", "instanceOf": "Person"}]})
        team = Team({"leader": {"__class__": "Person", "name": "Zoe"}})
        assert isinstance(team.leader(), Person)
        assert team.leader().name() == "Zoe"

    def test_nested_round_trip(self, Person):
        Team = create_class(
            {
                "className": "Team",
                "properties": [
                    {"name": "leader", "instanceOf": "Person"},
                    {"name": "members", "type": "array", "arrayOf": {"type": "Person"}},
                ],
            }
        )
        team = Team({"leader": Person({"name": "Alice"}), "members": [Person({"name": "Bob"})]})
        rebuilt = Team(team.to_json())
        assert rebuilt.leader().name() == "Alice"
        assert [member.name() for member in rebuilt.members()] == ["Bob"]
        assert rebuilt.to_dict() == team.to_dict()

    def test_cycle_written_as_reference(self):
        Node = create_class(
            {
                "className": "Node",
                "properties": [{"name": "id", "type": "int"}, {"name": "peer", "type": "Node"}],
            }
        )
        a, b = Node({"id": 1}), Node({"id": 2})
        a.peer(b)
        b.peer(a)
        assert a.to_dict() == {
            "__class__": "Node",
            "__version__": 1,
            "id": 1,
            "peer": {"__class__": "Node", "__version__": 1, "id": 2, "peer": "Node:1"},
        }

    def test_shared_instance_expanded_each_time(self, Person):
        Pair = create_class(
            {
                "className": "Pair",
                "properties": [
                    {"name": "left", "instanceOf": "Person"},
                    {"name": "right", "instanceOf": "Person"},
                ],
            }
        )
        alice = Person({"name": "Alice"})
        plain = Pair({"left": alice, "right": alice}).to_dict()
        assert plain["left"] == plain["right"] == alice.to_dict()

    def test_cycle_without_identity(self):
        Link = create_class({"className": "Link", "properties": [{"name": "next", "type": "Link"}]})
        link = Link()
        link.next(link)
        with pytest.raises(ProtoclassError):
            link.to_dict()
