from edutrack.schemas.common import Pagination, page_offset


def test_page_offset_is_zero_based():
    assert page_offset(1, 20) == 0
    assert page_offset(3, 20) == 40


def test_middle_page_links_both_ways():
    pagination = Pagination.build(page=2, limit=10, total=25, count=10)

    assert pagination.model_dump(by_alias=True) == {
        "current": 2,
        "pages": 3,
        "count": 10,
        "total": 25,
        "hasNext": True,
        "hasPrev": True,
        "next": 3,
        "prev": 1,
    }


def test_empty_result_has_no_pages():
    pagination = Pagination.build(page=1, limit=10, total=0, count=0)

    assert pagination.pages == 0
    assert not pagination.has_next
    assert not pagination.has_prev
