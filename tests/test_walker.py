from typing import List

import pytest

from strandbreak.models import Breakpoint, ReadFragment
from strandbreak.walker import (
    FragmentIndex,
    FragmentOrderError,
    confidence_interval,
    confidence_interval_binomial,
    partition_by_chrom,
    status_counts,
)


def make_fragments(chrom: str, strands: str, *, start: int = 0, step: int = 100, length: int = 50) -> List[ReadFragment]:
    return [
        ReadFragment(chrom=chrom, start=start + i * step, end=start + i * step + length, strand=s)
        for i, s in enumerate(strands)
    ]


def _swap(strand: str) -> str:
    return "+" if strand == "-" else "-"


def test_ww_cc_multiplicative_end_to_end():
    frags = make_fragments("chr1", "-" * 10) + make_fragments("chr1", "+" * 10, start=1100)
    bp = Breakpoint(chrom="chr1", start=1000, end=1100, genotype="ww-cc")

    (res,) = confidence_interval([bp], frags, background=0.05, conf=0.99)

    # two reads per side: 0.05 * 0.05 = 0.0025 <= 0.01
    assert res.start == 800
    assert res.end == 1250
    assert res.left_status == "confident"
    assert res.right_status == "confident"
    assert res.left_reads == 2
    assert res.right_reads == 2
    assert res.left_p == pytest.approx(0.0025)
    assert res.genotype == "ww-cc"
    assert (res.orig_start, res.orig_end) == (1000, 1100)


def test_no_fragments_returns_input_interval():
    bp = Breakpoint(chrom="chr1", start=5000, end=5100, genotype="wc-ww")
    (res,) = confidence_interval([bp], [], background=0.05, conf=0.99)
    assert (res.start, res.end) == (5000, 5100)
    assert res.left_status == "no_data"
    assert res.right_status == "no_data"

    (res,) = confidence_interval_binomial([bp], [], conf=0.99)
    assert (res.start, res.end) == (5000, 5100)
    assert (res.left_status, res.right_status) == ("no_data", "no_data")
    assert (res.left_reads, res.right_reads) == (0, 0)


def test_fragments_only_on_other_chromosome():
    frags = make_fragments("chr2", "-+-+")
    bp = Breakpoint(chrom="chr1", start=100, end=200, genotype="ww-cc")
    (res,) = confidence_interval([bp], frags)
    assert (res.start, res.end) == (100, 200)


@pytest.mark.parametrize("conf", [0.5, 0.9, 0.99, 0.999])
@pytest.mark.parametrize("strand", ["-", "+"])
@pytest.mark.parametrize("model", ["multiplicative", "binomial"])
def test_single_preceding_fragment(conf, strand, model):
    frags = [ReadFragment(chrom="chr1", start=100, end=150, strand=strand)]
    bp = Breakpoint(chrom="chr1", start=1000, end=1100, genotype="ww-cc")
    (res,) = confidence_interval([bp], frags, conf=conf, model=model)
    assert res.start == 100
    assert res.end == 1100
    assert res.right_status == "no_data"


def test_binomial_single_fragment_exhausts_for_mixed_genotype():
    frags = [ReadFragment(chrom="chr1", start=100, end=150, strand="+")]
    bp = Breakpoint(chrom="chr1", start=1000, end=1100, genotype="wc-cc")
    (res,) = confidence_interval_binomial([bp], frags, conf=0.999)
    assert (res.start, res.end) == (100, 1100)
    assert res.left_status == "exhausted"
    assert res.right_status == "no_data"
    assert res.left_reads == 1


def test_exhaustion_uses_first_fragment():
    frags = make_fragments("chr1", "++++")
    bp = Breakpoint(chrom="chr1", start=1000, end=1100, genotype="ww-cc")
    (res,) = confidence_interval([bp], frags, conf=0.99)
    assert res.start == 0
    assert res.left_status == "exhausted"
    assert res.left_reads == 4


@pytest.mark.parametrize("model", ["multiplicative", "binomial"])
def test_monotonic_in_conf(model):
    left = "-+--+-+--+-+-+--+-+--"
    right = "+-++-+-++-+-+-++-++-+"
    frags = make_fragments("chr1", left) + make_fragments("chr1", right, start=2200)
    bp = Breakpoint(chrom="chr1", start=2100, end=2200, genotype="ww-wc")

    previous = None
    for conf in [0.5, 0.8, 0.9, 0.99, 0.999, 0.99999]:
        (res,) = confidence_interval([bp], frags, conf=conf, model=model)
        assert res.start <= bp.start
        assert res.end >= bp.end
        if previous is not None:
            assert res.start <= previous.start
            assert res.end >= previous.end
        previous = res


@pytest.mark.parametrize("model", ["multiplicative", "binomial"])
def test_strand_swap_symmetry(model):
    left = "--+---+----"
    right = "++-+++++-++"
    frags = make_fragments("chr1", left) + make_fragments("chr1", right, start=1200)
    swapped = [ReadFragment(f.chrom, f.start, f.end, _swap(f.strand)) for f in frags]

    bp = Breakpoint(chrom="chr1", start=1100, end=1200, genotype="ww-cc")
    mirrored = Breakpoint(chrom="chr1", start=1100, end=1200, genotype="cc-ww")

    (a,) = confidence_interval([bp], frags, background=0.2, model=model)
    (b,) = confidence_interval([mirrored], swapped, background=0.2, model=model)
    assert (a.start, a.end) == (b.start, b.end)
    assert (a.left_status, a.right_status) == (b.left_status, b.right_status)


def test_repeated_refinement_is_stable():
    frags = make_fragments("chr1", "-" * 10) + make_fragments("chr1", "+" * 10, start=1100)
    breaks = [Breakpoint(chrom="chr1", start=1000, end=1100, genotype="ww-cc")]
    first = confidence_interval(breaks, frags)
    second = confidence_interval(breaks, frags)
    assert first == second
    assert breaks[0].start == 1000


def test_binomial_stops_after_expected_reads():
    frags = make_fragments("chr1", "-" * 20) + make_fragments("chr1", "+" * 20, start=2100)
    bp = Breakpoint(chrom="chr1", start=2000, end=2100, genotype="ww-cc")

    (res,) = confidence_interval_binomial([bp], frags, background=0.3, conf=0.99)

    # P(X <= 0) = 0.7 ** n drops below 0.01 at n = 13
    assert res.left_reads == 13
    assert res.right_reads == 13
    assert res.start == 700
    assert res.end == 3350
    assert res.left_status == "confident"
    assert res.left_p == pytest.approx(0.7 ** 13)


def test_binomial_exhausts_on_short_data():
    frags = make_fragments("chr1", "-" * 10)
    bp = Breakpoint(chrom="chr1", start=1000, end=1100, genotype="ww-cc")
    (res,) = confidence_interval_binomial([bp], frags, background=0.02, conf=0.99)
    assert res.start == 0
    assert res.left_status == "exhausted"
    assert res.left_p == pytest.approx(0.98 ** 10)


def test_multiple_chromosomes_keep_cardinality_and_grouping():
    frags = {
        "chr1": make_fragments("chr1", "-" * 5 + "+" * 5),
        "chr2": make_fragments("chr2", "+" * 5 + "-" * 5),
    }
    breaks = [
        Breakpoint(chrom="chr2", start=500, end=500, genotype="cc-ww"),
        Breakpoint(chrom="chr1", start=500, end=500, genotype="ww-cc"),
        Breakpoint(chrom="chr2", start=300, end=300, genotype="cc-ww"),
        Breakpoint(chrom="chr3", start=10, end=20, genotype="ww-wc"),
    ]
    out = confidence_interval(breaks, frags)
    assert [r.chrom for r in out] == ["chr2", "chr2", "chr1", "chr3"]
    assert (out[0].start, out[0].end) == (300, 650)
    assert (out[2].start, out[2].end) == (300, 650)
    assert (out[3].start, out[3].end) == (10, 20)
    counts = status_counts(out)
    assert sum(counts.values()) == 2 * len(breaks)
    assert counts["no_data"] == 2


def test_unsorted_fragments_are_rejected():
    frags = make_fragments("chr1", "--++")
    frags[1], frags[2] = frags[2], frags[1]
    bp = Breakpoint(chrom="chr1", start=150, end=250, genotype="ww-cc")
    with pytest.raises(FragmentOrderError):
        confidence_interval([bp], frags)


@pytest.mark.parametrize("kwargs", [{"conf": 0.0}, {"conf": 1.0}, {"conf": 1.5}, {"background": 0.5}])
def test_invalid_configuration_fails_fast(kwargs):
    with pytest.raises(ValueError):
        confidence_interval([], [], **kwargs)


def test_fragment_index_lookups():
    frags = [
        ReadFragment("chr1", 0, 500, "-"),
        ReadFragment("chr1", 100, 150, "-"),
        ReadFragment("chr1", 200, 900, "+"),
    ]
    index = FragmentIndex.from_fragments(frags)
    assert index.last_starting_before(0) is None
    assert index.last_starting_before(150) == 1
    assert index.first_ending_after(400) == 0
    assert index.first_ending_after(500) == 2
    assert index.first_ending_after(900) is None


def test_partition_by_chrom_preserves_order():
    frags = make_fragments("chr2", "-+") + make_fragments("chr1", "+")
    parts = partition_by_chrom(frags)
    assert list(parts) == ["chr2", "chr1"]
    assert len(parts["chr2"]) == 2
