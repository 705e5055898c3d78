from sitespider.domain.visited_tracker import VisitedTracker


def test_identity_not_visited_initially():
    tracker = VisitedTracker()
    assert not tracker.is_visited("GET https://example.com/")


def test_marking_identity_makes_it_visited():
    tracker = VisitedTracker()
    tracker.mark("GET https://example.com/")
    assert tracker.is_visited("GET https://example.com/")
    assert not tracker.is_visited("POST https://example.com/")


def test_marking_same_identity_twice_is_idempotent():
    tracker = VisitedTracker()
    tracker.mark("a")
    tracker.mark("a")
    assert len(tracker) == 1


def test_unbounded_by_default():
    tracker = VisitedTracker()
    for i in range(5000):
        tracker.mark(f"u{i}")
    assert len(tracker) == 5000
    assert tracker.is_visited("u0")


def test_bounded_tracker_evicts_oldest():
    tracker = VisitedTracker(max_size=2)
    tracker.mark("a")
    tracker.mark("b")
    tracker.mark("c")
    assert not tracker.is_visited("a")
    assert tracker.is_visited("b")
    assert tracker.is_visited("c")


def test_non_positive_max_size_means_unbounded():
    tracker = VisitedTracker(max_size=0)
    for i in range(10):
        tracker.mark(str(i))
    assert len(tracker) == 10
