from itertools import permutations

from portal.listing import CANCELLED, PAST, UPCOMING, FilterCriteria, filter_appointments, tab_counts
from portal.models import ONLINE

from .fakes import appointment


def sample():
    return [
        appointment(1, status="pending", days=2),
        appointment(2, status="completed", days=-5),
        appointment(3, status="cancelled", days=-1),
    ]


def test_upcoming_tab_and_badges():
    items = sample()
    criteria = FilterCriteria(tab=UPCOMING)
    assert [a.id for a in filter_appointments(items, criteria)] == [1]
    assert tab_counts(items, criteria) == {UPCOMING: 1, PAST: 1, CANCELLED: 1}


def test_no_show_belongs_to_cancelled_tab():
    items = [appointment(1, status="no-show", days=-3), appointment(2, status="cancelled", days=-1)]
    assert [a.id for a in filter_appointments(items, FilterCriteria(tab=CANCELLED))] == [2, 1]


def test_upcoming_sorted_ascending_others_descending():
    items = [
        appointment(1, status="confirmed", days=9),
        appointment(2, status="scheduled", days=1),
        appointment(3, status="completed", days=-10),
        appointment(4, status="completed", days=-2),
    ]
    assert [a.id for a in filter_appointments(items, FilterCriteria(tab=UPCOMING))] == [2, 1]
    assert [a.id for a in filter_appointments(items, FilterCriteria(tab=PAST))] == [4, 3]


def test_query_matches_doctor_specialization_or_reason():
    items = [
        appointment(1, doctor_name="Anil Mehta", specialization="Cardiology", reason="Chest pain"),
        appointment(2, doctor_name="Priya Rao", specialization="Dermatology", reason="Rash"),
    ]
    assert [a.id for a in filter_appointments(items, FilterCriteria(query="mehta"))] == [1]
    assert [a.id for a in filter_appointments(items, FilterCriteria(query="DERMA"))] == [2]
    assert [a.id for a in filter_appointments(items, FilterCriteria(query="rash"))] == [2]
    assert filter_appointments(items, FilterCriteria(query="rash ")) == []


def test_counts_ignore_tab_but_respect_other_filters():
    items = sample() + [appointment(4, status="pending", days=3, payment_mode=ONLINE)]
    criteria = FilterCriteria(payment=ONLINE, tab=PAST)
    assert filter_appointments(items, criteria) == []
    assert tab_counts(items, criteria) == {UPCOMING: 1, PAST: 0, CANCELLED: 0}


def test_type_filter():
    items = [appointment(1, type="video"), appointment(2)]
    assert [a.id for a in filter_appointments(items, FilterCriteria(type="video"))] == [1]


def test_result_independent_of_input_order():
    items = sample() + [appointment(4, status="confirmed", days=5), appointment(5, status="pending", days=4)]
    expected = [a.id for a in filter_appointments(items, FilterCriteria())]
    for ordering in permutations(items):
        assert [a.id for a in filter_appointments(list(ordering), FilterCriteria())] == expected
