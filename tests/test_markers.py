from typing import Annotated, ClassVar

from nanoinject import Dependency, FieldDescriptor, fields_of, has_dependency_marker


class DB: ...


class Repo:
    db: Annotated[DB, Dependency]
    backup: Annotated[DB, Dependency(), "replica"]
    name: str
    instances: ClassVar[int] = 0


def test_fields_of_describes_annotated_attributes():
    fields = {f.name: f for f in fields_of(Repo)}

    assert set(fields) == {"db", "backup", "name"}
    assert fields["db"].declared_type is DB
    assert fields["db"].owner is Repo
    assert fields["name"].declared_type is str
    assert fields["name"].metadata == ()
    assert fields["backup"].metadata[1] == "replica"


def test_dependency_marker_accepts_class_and_instance():
    fields = {f.name: f for f in fields_of(Repo)}

    assert has_dependency_marker(fields["db"])
    assert has_dependency_marker(fields["backup"])
    assert not has_dependency_marker(fields["name"])


def test_field_descriptor_get_and_set():
    field = FieldDescriptor(owner=Repo, name="db", declared_type=DB)
    repo = Repo()
    db = DB()

    assert field.get(repo) is None
    field.set(repo, db)
    assert field.get(repo) is db
