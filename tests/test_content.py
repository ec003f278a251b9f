"""Tests for PagedContent."""

import pytest

from pagedcontent.content import PagedContent
from pagedcontent.errors import PagedContentInvariantError
from pagedcontent.page import Page

from conftest import make_page, returning, status


class TestSplicing:
    """Prepend/append and the page index."""

    def test_starts_empty(self):
        content = PagedContent()

        assert content.is_empty
        assert content.head is None
        assert content.tail is None
        assert content.previous_cursor is None
        assert content.next_cursor is None

    def test_append_and_prepend_order(self):
        content = PagedContent()
        middle, older, newer = make_page(2), make_page(3), make_page(1)

        content.append(middle)
        content.append(older)
        content.prepend(newer)

        assert content.pages == (newer, middle, older)
        assert [content.index_of(p.id) for p in (newer, middle, older)] == [0, 1, 2]

    def test_index_survives_many_prepends(self):
        content = PagedContent([make_page(0)])
        added = []
        for i in range(1, 6):
            page = make_page(-i)
            content.prepend(page)
            added.append(page)

        for page in added:
            assert content.pages[content.index_of(page.id)] is page

    def test_cursors_come_from_boundaries(self):
        newer = returning(make_page(0))
        older = returning(make_page(9))
        content = PagedContent([make_page(1, previous=newer), make_page(2, next=older)])

        assert content.previous_cursor is newer
        assert content.next_cursor is older

    def test_duplicate_page_id_is_invariant_error(self):
        page = make_page(1)
        content = PagedContent([page])

        with pytest.raises(PagedContentInvariantError):
            content.append(page)
        with pytest.raises(PagedContentInvariantError):
            content.prepend(Page(elements=(status(2),), id=page.id))

    def test_contains_and_lookup(self):
        page = make_page(1)
        content = PagedContent([page])

        assert page.id in content
        assert "nope" not in content
        assert content.page(page.id) is page
        with pytest.raises(PagedContentInvariantError):
            content.page("nope")


class TestReplace:
    """Identity-preserving replacement."""

    def test_replace_element_keeps_page_ids(self):
        p0 = Page(elements=(status("e1"), status("e2")), id="a")
        p1 = Page(elements=(status("e3"),), id="b")
        content = PagedContent([p0, p1])

        content.replace_element(status("e2", "edited"))

        new_p0, new_p1 = content.pages
        assert new_p0.id == "a"
        assert [s["id"] for s in new_p0.elements] == ["e1", "e2"]
        assert new_p0.elements[1]["content"] == "<p>edited</p>"
        assert new_p1 is p1

    def test_replace_element_updates_every_page_with_that_id(self):
        content = PagedContent([make_page(1, 2), make_page(2, 3)])

        replaced = content.replace_element(status(2, "boosted again"))

        assert len(replaced) == 2
        for page in content.pages:
            assert page.elements[page.index_of(2)]["content"] == "<p>boosted again</p>"

    def test_replace_element_scoped_to_page(self):
        first, second = make_page(1, 2), make_page(2, 3)
        content = PagedContent([first, second])

        content.replace_element(status(2, "only here"), page_id=second.id)

        assert content.pages[0] is first
        assert content.pages[1].elements[0]["content"] == "<p>only here</p>"

    def test_replace_unknown_element_is_invariant_error(self):
        content = PagedContent([make_page(1)])

        with pytest.raises(PagedContentInvariantError):
            content.replace_element(status(99))

    def test_replace_element_in_stale_page_is_invariant_error(self):
        content = PagedContent([make_page(1)])

        with pytest.raises(PagedContentInvariantError):
            content.replace_element(status(1), page_id="gone")

    def test_replace_page_keeps_position(self):
        first, second = make_page(1), make_page(2)
        content = PagedContent([first, second])

        content.replace(first.id, first.replacing(elements=(status(1), status(4))))

        assert content.pages[0].id == first.id
        assert content.pages[1] is second
        assert content.pages_containing(4) == [content.pages[0]]

    def test_replace_reindexes_elements(self):
        page = make_page(1, 2)
        content = PagedContent([page])

        content.replace(page.id, page.replacing(elements=(status(3),)))

        assert content.pages_containing(1) == []
        assert content.pages_containing(3)[0].id == page.id

    def test_replace_missing_page_is_invariant_error(self):
        content = PagedContent([make_page(1)])

        with pytest.raises(PagedContentInvariantError):
            content.replace("stale", make_page(2))


class TestReadSide:
    def test_elements_in_display_order_with_filter(self):
        content = PagedContent([make_page(1, 2), make_page(3)])
        content.append(Page(elements=(status(4, reblog={"id": 40}),)))

        assert [s["id"] for s in content.elements()] == [1, 2, 3, 4]
        assert [s["id"] for s in content.elements(lambda s: not s.get("reblog"))] == [1, 2, 3]

    def test_observers_fire_on_change_and_unsubscribe(self):
        content = PagedContent()
        seen = []
        unsubscribe = content.observe(lambda c: seen.append(len(c)))

        content.append(make_page(1))
        content.prepend(make_page(0))
        unsubscribe()
        content.append(make_page(2))

        assert seen == [1, 2]
