import fractions

import pytest

import sequenza.events
import sequenza.intervals
import sequenza.notation


def evaluate (text: str, scale: str = "major", key_pc: int = 0, inversion: int = 0) -> list:

	"""Parse and evaluate notation into resolved events."""

	context = sequenza.notation.EvaluationContext(
		key_pc = key_pc,
		scale = sequenza.intervals.resolve_scale(scale),
		inversion = inversion,
	)

	nodes = sequenza.notation.parse(text)
	produced = sequenza.events.flatten([node.evaluate(context) for node in nodes])

	return sequenza.events.resolve_subdivisions(produced)


def test_tokenize_nests_groups ():

	"""Brackets become nested groups."""

	tokens = sequenza.notation._tokenize("0 [1 [2 3]] {10 11}")

	assert tokens[0] == "0"
	assert tokens[1].opener == "["
	assert tokens[1].items[0] == "1"
	assert tokens[1].items[1].items == ["2", "3"]
	assert tokens[2].opener == "{"
	assert tokens[2].items == ["10", "11"]


def test_degrees_in_c_major ():

	events = evaluate("0 1 2 3 4 5 6 7")

	assert [event.note for event in events] == [60, 62, 64, 65, 67, 69, 71, 72]
	assert [event.pitch for event in events] == [0, 1, 2, 3, 4, 5, 6, 7]
	assert events[7].octave == 5


def test_ten_and_eleven ():

	events = evaluate("T E", scale="chromatic")

	assert [event.note for event in events] == [70, 71]


def test_negative_degree_descends ():

	events = evaluate("-1 -7")

	assert [event.note for event in events] == [59, 48]
	assert events[0].octave == 3


def test_chord_token ():

	"""Degrees written together sound as one chord."""

	events = evaluate("024")

	assert len(events) == 1
	assert isinstance(events[0], sequenza.events.Chord)
	assert events[0].notes() == [60, 64, 67]


def test_octave_and_accidental_prefixes ():

	events = evaluate("^0 _0 #0 b2 0^24")

	assert events[0].note == 72
	assert events[1].note == 48
	assert events[2].note == 61
	assert events[3].note == 63
	assert events[4].notes() == [60, 76, 67]


def test_roman_numerals ():

	events = evaluate("i iv v7 VI")

	assert events[0].notes() == [60, 64, 67]
	assert events[1].notes() == [65, 69, 72]
	assert events[2].notes() == [67, 71, 74, 77]
	assert events[3].notes() == [69, 72, 76]


def test_prefixed_roman_numerals_are_uppercase ():

	"""A duration letter before a lowercase numeral reads as a sound name."""

	events = evaluate("hI qV7 hi ti")

	assert events[0].notes() == [60, 64, 67]
	assert events[0].duration == fractions.Fraction(1, 2)
	assert events[1].notes() == [67, 71, 74, 77]
	assert events[1].duration == fractions.Fraction(1, 4)
	assert [events[2].name, events[3].name] == ["hi", "ti"]


def test_rest_and_sounds ():

	events = evaluate("0 r kick hh")

	assert isinstance(events[1], sequenza.events.Rest)
	assert isinstance(events[2], sequenza.events.SoundEvent)
	assert events[2].name == "kick"
	assert events[3].name == "hh"


def test_default_duration_is_a_quarter ():

	events = evaluate("0 r")

	assert [event.duration for event in events] == [fractions.Fraction(1, 4)] * 2


def test_standing_duration ():

	"""A lone duration letter applies to everything after it."""

	events = evaluate("0 e 1 2 h 3")

	assert [event.duration for event in events] == [
		fractions.Fraction(1, 4),
		fractions.Fraction(1, 8),
		fractions.Fraction(1, 8),
		fractions.Fraction(1, 2),
	]


def test_prefixed_duration_applies_once ():

	events = evaluate("e0 1 q.024 hr")

	assert events[0].duration == fractions.Fraction(1, 8)
	assert events[1].duration == fractions.Fraction(1, 4)
	assert events[2].duration == fractions.Fraction(3, 8)
	assert events[3].duration == fractions.Fraction(1, 2)


@pytest.mark.parametrize("token, expected", [
	("w", fractions.Fraction(1)),
	("h", fractions.Fraction(1, 2)),
	("q", fractions.Fraction(1, 4)),
	("e", fractions.Fraction(1, 8)),
	("s", fractions.Fraction(1, 16)),
	("t", fractions.Fraction(1, 32)),
	("f", fractions.Fraction(1, 64)),
	("q.", fractions.Fraction(3, 8)),
	("h..", fractions.Fraction(7, 8)),
])
def test_parse_duration (token, expected):

	assert sequenza.notation.parse_duration(token) == expected


def test_subdivision_splits_the_slot ():

	events = evaluate("0 [1 2] [3 [4 5]]")

	assert [event.note for event in events] == [60, 62, 64, 65, 67, 69]
	assert [event.duration for event in events] == [
		fractions.Fraction(1, 4),
		fractions.Fraction(1, 8),
		fractions.Fraction(1, 8),
		fractions.Fraction(1, 8),
		fractions.Fraction(1, 16),
		fractions.Fraction(1, 16),
	]


def test_subdivision_takes_the_standing_duration ():

	events = evaluate("h [0 1 2]")

	assert [event.duration for event in events] == [fractions.Fraction(1, 6)] * 3
	assert sum(event.duration for event in events) == fractions.Fraction(1, 2)


def test_number_list ():

	"""Braces hold whole numbers, each its own pitch."""

	events = evaluate("{10 11 -3}", scale="chromatic")

	assert [event.note for event in events] == [70, 71, 57]


def test_inversion_from_context ():

	events = evaluate("024", inversion=1)

	assert events[0].notes() == [64, 67, 72]
	assert events[0].pitches[2].octave == 5


def test_pitch_outside_scale_keeps_degree ():

	"""A sharpened degree keeps its written degree."""

	events = evaluate("#3")

	assert events[0].pitch == 3
	assert events[0].note == 66


@pytest.mark.parametrize("text", [
	"",
	"   ",
	"[0 1",
	"0 1]",
	"{1 2",
	"[0 }",
	"0 @",
	"[e 0 1]",
	"[e0 1]",
	"{1 x}",
	"{1 [2]}",
	"0 []",
	"[0 []]",
	"0 {}",
])
def test_parse_errors (text):

	with pytest.raises(sequenza.notation.ParseError):
		sequenza.notation.parse(text)
