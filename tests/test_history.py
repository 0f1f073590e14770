"""Tests for ShapeHistory."""

from shotmark.editor.geometry import Pos
from shotmark.editor.history import ShapeHistory
from shotmark.editor.shapes import CircleCountShape, LineShape

RED = (255, 0, 0, 255)


def line(n):
    return LineShape(start=Pos(0, 0), end=Pos(n, n), color=RED, size=2.0)


def bubble(count):
    return CircleCountShape(center=Pos(10, 10), pointer=Pos(10, 10), color=RED, size=3.0, count=count)


def test_commit_appends_and_bumps_version():
    history = ShapeHistory()
    assert history.version == 0
    history.commit(line(1))
    history.commit(line(2))
    assert len(history) == 2
    assert history.version == 2
    assert [s.end.x for s in history.shapes] == [1, 2]


def test_undo_redo_are_inverse():
    history = ShapeHistory()
    shapes = [line(i) for i in range(3)]
    for s in shapes:
        history.commit(s)

    assert history.undo() is shapes[2]
    assert history.undo() is shapes[1]
    assert list(history.shapes) == shapes[:1]
    assert history.redo() is shapes[1]
    assert history.redo() is shapes[2]
    assert list(history.shapes) == shapes
    assert not history.can_redo


def test_commit_discards_redo_stack():
    history = ShapeHistory()
    history.commit(line(1))
    history.commit(line(2))
    history.undo()
    assert history.can_redo

    history.commit(line(3))
    assert not history.can_redo
    assert history.redo() is None
    assert [s.end.x for s in history.shapes] == [1, 3]


def test_noops_keep_version():
    history = ShapeHistory()
    assert history.undo() is None
    assert history.redo() is None
    assert history.clear() is False
    assert history.version == 0

    history.commit(line(1))
    version = history.version
    assert history.redo() is None
    assert history.version == version


def test_every_change_gets_a_new_version():
    history = ShapeHistory()
    seen = {history.version}
    history.commit(line(1))
    seen.add(history.version)
    history.undo()
    seen.add(history.version)
    history.redo()
    seen.add(history.version)
    history.clear()
    seen.add(history.version)
    assert len(seen) == 5


def test_clear_drops_redo_too():
    history = ShapeHistory()
    history.commit(line(1))
    history.commit(line(2))
    history.undo()
    assert history.clear() is True
    assert len(history) == 0
    assert not history.can_undo
    assert not history.can_redo


def test_next_circle_count_uses_highest_label():
    history = ShapeHistory()
    assert history.next_circle_count() == 1
    history.commit(bubble(1))
    history.commit(bubble(2))
    history.commit(line(1))
    assert history.next_circle_count() == 3
    history.undo()
    assert history.next_circle_count() == 3
    history.undo()
    assert history.next_circle_count() == 2
