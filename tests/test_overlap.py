import itertools

from court_scheduler.overlap import clip, max_concurrent, overlaps, time_ranges_overlap


def test_overlap_is_symmetric():
    points = [0, 30, 60, 90, 120]
    for s1, e1, s2, e2 in itertools.product(points, repeat=4):
        assert overlaps(s1, e1, s2, e2) == overlaps(s2, e2, s1, e1)


def test_adjacent_intervals_do_not_overlap():
    # 09:00-10:00 and 10:00-11:00
    assert overlaps(540, 600, 600, 660) is False
    assert overlaps(600, 660, 540, 600) is False


def test_partial_and_contained_overlap():
    assert overlaps(540, 600, 570, 630) is True
    assert overlaps(540, 720, 600, 630) is True
    assert overlaps(540, 600, 540, 600) is True


def test_degenerate_interval_never_overlaps():
    assert overlaps(600, 600, 540, 660) is False
    assert overlaps(540, 660, 630, 600) is False
    assert overlaps(0, 0, 0, 0) is False


def test_time_ranges_overlap_uses_normalizer():
    assert time_ranges_overlap("09:00", "10:00", "9:30 AM", 0.4375) is True
    assert time_ranges_overlap("09:00", "10:00", "10:00", "11:00") is False


def test_clip():
    assert clip(540, 660, 510, 720) == 120
    assert clip(690, 750, 510, 720) == 30
    assert clip(720, 780, 510, 720) == 0
    assert clip(600, 600, 510, 720) == 0


def test_max_concurrent():
    assert max_concurrent([]) == 0
    assert max_concurrent([(540, 600), (600, 660)]) == 1
    assert max_concurrent([(540, 600), (570, 630), (615, 660)]) == 2
    assert max_concurrent([(540, 720), (550, 560), (555, 565), (558, 700)]) == 4
    assert max_concurrent([(600, 600), (600, 660)]) == 1
