"""Tests for pagination helpers and the list envelope."""
from fleet_api.core.pagination import PageParams, pagination_meta, paginate_list, paginated


class TestPageParams:
    """Tests for PageParams.page."""

    def test_first_page(self):
        assert PageParams(offset=0, limit=10).page == 1

    def test_page_from_offset(self):
        assert PageParams(offset=25, limit=10).page == 3


class TestPaginationMeta:
    """Tests for pagination_meta."""

    def test_pages_rounds_up(self):
        meta = pagination_meta(PageParams(offset=10, limit=10), 21)
        assert meta == {"page": 2, "limit": 10, "offset": 10, "total": 21, "pages": 3}

    def test_empty(self):
        meta = pagination_meta(PageParams(), 0)
        assert meta["pages"] == 0
        assert meta["total"] == 0


class TestPaginateList:
    """Tests for paginate_list and paginated."""

    def test_slices_window(self):
        items, total = paginate_list(list(range(25)), PageParams(offset=20, limit=10))
        assert items == [20, 21, 22, 23, 24]
        assert total == 25

    def test_transform_applies_to_window_only(self):
        seen = []

        def double(x):
            seen.append(x)
            return x * 2

        items, _ = paginate_list([1, 2, 3, 4], PageParams(offset=1, limit=2), double)
        assert items == [4, 6]
        assert seen == [2, 3]

    def test_envelope(self):
        envelope = paginated(["a"], 1, PageParams())
        assert envelope["data"] == ["a"]
        assert envelope["pagination"]["page"] == 1
