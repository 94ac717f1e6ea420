import pytest

from topicseg.chunking.assemble import DraftChunk, assemble
from topicseg.errors import InvalidArgument
from topicseg.ingestion.segmentation import sliding_windows


def effective_spans(drafts):
    out = []
    floor = 0
    for d in drafts:
        out.append((max(d.start_token, floor), d.end_token))
        floor = d.end_token
    return out


def test_topic_boundary_with_undersized_tail_merges_and_resplits(segments_of):
    segs = segments_of([10] * 100)
    drafts = assemble(segs, {50}, target_size=200, min_size=128, max_size=400)
    assert effective_spans(drafts) == [(0, 370), (370, 500), (500, 870), (870, 1000)]


def test_size_boundary_closes_chunk_before_max(segments_of):
    segs = segments_of([100] * 10)
    drafts = assemble(segs, set(), target_size=200, min_size=128, max_size=400)
    assert effective_spans(drafts) == [(0, 400), (400, 800), (800, 1000)]


def test_single_short_segment_passes_through(segments_of):
    drafts = assemble(segments_of([15]), set(), target_size=200, min_size=128, max_size=400)
    assert len(drafts) == 1
    assert drafts[0].span() == 15


def test_short_first_draft_joins_successor(segments_of):
    segs = segments_of([20, 300, 300])
    drafts = assemble(segs, {1, 2}, target_size=200, min_size=128, max_size=400)
    assert effective_spans(drafts) == [(0, 320), (320, 620)]


def test_resplit_cuts_inside_segment_when_no_boundary_fits(segments_of):
    segs = segments_of([390, 100])
    drafts = assemble(segs, {1}, target_size=200, min_size=128, max_size=400)
    assert effective_spans(drafts) == [(0, 362), (362, 490)]
    head = drafts[0]
    assert head.segments[-1].text.split()[-1] == "w361"


def test_oversized_segment_is_broken_up(segments_of):
    drafts = assemble(segments_of([1000]), set(), target_size=200, min_size=128, max_size=400)
    assert effective_spans(drafts) == [(0, 400), (400, 800), (800, 1000)]


def test_short_tail_retiled_with_earlier_drafts_when_max_below_twice_min(segments_of):
    drafts = assemble(segments_of([10] * 101), set(), target_size=150, min_size=128, max_size=200)
    assert effective_spans(drafts) == [
        (0, 200),
        (200, 400),
        (400, 600),
        (600, 737),
        (737, 874),
        (874, 1010),
    ]


def test_short_middle_draft_retiled_with_following_draft(segments_of):
    segs = segments_of([20, 190, 190])
    drafts = assemble(segs, {1, 2}, target_size=150, min_size=128, max_size=200)
    assert effective_spans(drafts) == [(0, 200), (200, 400)]
    assert " ".join(d.text for d in drafts).split() == [f"w{i}" for i in range(400)]


def test_untileable_document_keeps_max_size(segments_of):
    # 250 tokens: one piece is too big, two pieces are too small.
    drafts = assemble(segments_of([10] * 25), set(), target_size=150, min_size=128, max_size=200)
    assert effective_spans(drafts) == [(0, 200), (200, 250)]


def test_windowed_segments_counted_without_overlap():
    tokens = [f"t{i}" for i in range(2000)]
    windows = sliding_windows(tokens, 200, 50)
    drafts = assemble(windows, set(), target_size=200, min_size=128, max_size=400)
    assert [d.end_token for d in drafts] == [350, 650, 950, 1250, 1550, 1850, 2000]
    assert all(a <= 400 for a in (e - s for s, e in effective_spans(drafts)))


def test_max_size_never_exceeded_with_topic_shift_everywhere(segments_of):
    segs = segments_of([37, 5, 120, 3, 250, 90, 8, 400, 1, 60])
    drafts = assemble(segs, set(range(1, len(segs))), target_size=200, min_size=128, max_size=400)
    sizes = [e - s for s, e in effective_spans(drafts)]
    assert all(size <= 400 for size in sizes)
    assert sum(sizes) == sum([37, 5, 120, 3, 250, 90, 8, 400, 1, 60])
    assert all(size >= 128 for size in sizes)


def test_draft_chunk_span_respects_floor(segments_of):
    draft = DraftChunk(segments_of([10, 10]))
    assert draft.span() == 20
    assert draft.span(floor=5) == 15


@pytest.mark.parametrize(
    "target,low,high",
    [(200, 500, 400), (50, 128, 400), (500, 128, 400), (10, 0, 400)],
)
def test_invalid_sizes(segments_of, target, low, high):
    with pytest.raises(InvalidArgument):
        assemble(segments_of([10]), set(), target_size=target, min_size=low, max_size=high)
