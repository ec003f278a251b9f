"""Tests for Page."""

import dataclasses

import pytest

from pagedcontent.errors import PagedContentInvariantError
from pagedcontent.page import Page, element_id

from conftest import make_page, returning, status


class TestPage:
    """Page identity and copy-on-update."""

    def test_ids_are_unique_for_identical_fetches(self):
        a = make_page(1, 2)
        b = make_page(1, 2)

        assert a.id != b.id
        assert a != b

    def test_equality_and_hash_follow_id(self):
        page = make_page(1)
        same_id = Page(elements=(status(9),), id=page.id)

        assert page == same_id
        assert hash(page) == hash(same_id)
        assert len({page, same_id}) == 1

    def test_page_is_immutable(self):
        page = make_page(1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            page.elements = ()

    def test_elements_coerced_to_tuple(self):
        page = Page(elements=[status(1), status(2)])

        assert isinstance(page.elements, tuple)
        assert len(page) == 2

    def test_empty_page_is_valid(self):
        page = Page()

        assert page.elements == ()
        assert page.previous is None
        assert page.next is None

    def test_replacing_keeps_id_and_cursors(self):
        cursor = returning(make_page(3))
        page = make_page(1, next=cursor)

        updated = page.replacing(elements=(status(2),))

        assert updated.id == page.id
        assert updated.next is cursor
        assert updated.element_ids() == [2]
        assert page.element_ids() == [1]

    def test_replacing_refuses_new_id(self):
        with pytest.raises(TypeError):
            make_page(1).replacing(id="other")

    def test_replacing_element_swaps_in_place(self):
        page = make_page(1, 2, 3)

        updated = page.replacing_element(status(2, "edited"))

        assert updated.element_ids() == [1, 2, 3]
        assert updated.elements[1]["content"] == "<p>edited</p>"

    def test_replacing_element_updates_repeats_in_one_page(self):
        page = make_page(1, 2, 1)

        updated = page.replacing_element(status(1, "edited"))

        assert updated.element_ids() == [1, 2, 1]
        assert updated.elements[0]["content"] == "<p>edited</p>"
        assert updated.elements[2]["content"] == "<p>edited</p>"
        assert updated.elements[1] is page.elements[1]

    def test_replacing_missing_element_is_invariant_error(self):
        with pytest.raises(PagedContentInvariantError):
            make_page(1).replacing_element(status(5))

    def test_element_id_accepts_mappings_and_objects(self):
        class Obj:
            id = "x"

        assert element_id({"id": 7}) == 7
        assert element_id(Obj()) == "x"

    def test_repr_is_short(self):
        page = make_page(1, 2)

        assert repr(page) == f"Page(id={page.id[:8]}, elements=2, previous=no, next=no)"
