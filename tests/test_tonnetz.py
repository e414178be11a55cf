import pytest

import sequenza.tonnetz


LETTERS = "prlfnsht"

TRIADS = [[root, (root + 4) % 12, (root + 7) % 12] for root in range(12)] + [[root, (root + 3) % 12, (root + 7) % 12] for root in range(12)]


@pytest.mark.parametrize("letter, expected", [
	("p", [0, 3, 7]),
	("r", [9, 0, 4]),
	("l", [4, 7, 11]),
	("f", [7, 10, 2]),
	("n", [5, 8, 0]),
	("s", [1, 4, 8]),
	("h", [8, 11, 3]),
	("t", [6, 10, 1]),
])
def test_single_operators_on_c_major (letter: str, expected: list) -> None:

	"""Each operator moves C major to its neighbour in the default space."""

	assert sequenza.tonnetz.transform([0, 4, 7], letter) == expected


@pytest.mark.parametrize("operations, expected", [
	("pr", [3, 7, 10]),
	("rp", [9, 1, 4]),
	("plr", [5, 8, 0]),
	("plprlplrl", [2, 5, 9]),
	("hsf", [2, 5, 9]),
	("hsftn", [3, 7, 10]),
	("hsftnprpl", [2, 6, 9]),
])
def test_compositions_apply_left_to_right (operations: str, expected: list) -> None:

	assert sequenza.tonnetz.transform([0, 4, 7], operations) == expected


@pytest.mark.parametrize("operations, expected", [
	("t", [6, 9, 1]),
	("pt", [6, 10, 1]),
	("lt", [2, 6, 9]),
	("rt", [9, 1, 4]),
])
def test_tritone_after_other_operators_on_c_minor (operations: str, expected: list) -> None:

	assert sequenza.tonnetz.transform([0, 3, 7], operations) == expected


def test_composition_is_not_commutative () -> None:

	assert sequenza.tonnetz.transform([0, 4, 7], "pr") != sequenza.tonnetz.transform([0, 4, 7], "rp")


@pytest.mark.parametrize("letter", list(LETTERS))
def test_every_letter_is_an_involution (letter: str) -> None:

	"""Applying a letter twice returns the exact original triad."""

	for chord in TRIADS:
		once = sequenza.tonnetz.transform(chord, letter)
		assert sequenza.tonnetz.transform(once, letter) == chord


@pytest.mark.parametrize("letter", list(LETTERS))
def test_doubled_letter_is_identity (letter: str) -> None:

	for chord in TRIADS:
		assert sequenza.tonnetz.transform(chord, letter * 2) == chord


@pytest.mark.parametrize("letter", list("prlfnsh"))
def test_letters_flip_quality (letter: str) -> None:

	for chord in TRIADS:
		_, before = sequenza.tonnetz.analyze(chord)
		_, after = sequenza.tonnetz.analyze(sequenza.tonnetz.transform(chord, letter))
		assert after is before.flipped()


def test_tritone_keeps_quality () -> None:

	for chord in TRIADS:
		_, before = sequenza.tonnetz.analyze(chord)
		_, after = sequenza.tonnetz.analyze(sequenza.tonnetz.transform(chord, "t"))
		assert after is before


def test_parallel_keeps_root () -> None:

	for chord in TRIADS:
		assert sequenza.tonnetz.transform(chord, "p")[0] == chord[0]


def test_input_is_normalized () -> None:

	"""MIDI notes and negative values are read as pitch classes."""

	assert sequenza.tonnetz.transform([60, 64, 67], "p") == [0, 3, 7]
	assert sequenza.tonnetz.transform([-12, -8, -5], "r") == [9, 0, 4]


def test_uppercase_and_separators_are_accepted () -> None:

	assert sequenza.tonnetz.transform([0, 4, 7], "P, L R") == sequenza.tonnetz.transform([0, 4, 7], "plr")


def test_step_threads_quality () -> None:

	root, quality = sequenza.tonnetz.step("r", 0, sequenza.tonnetz.Quality.MAJOR)

	assert root == 9
	assert quality is sequenza.tonnetz.Quality.MINOR


@pytest.mark.parametrize("operations", ["", "x", "pq", "p1", "p123", "p11", "p02", "p-1"])
def test_invalid_operators (operations: str) -> None:

	with pytest.raises(sequenza.tonnetz.InvalidOperator):
		sequenza.tonnetz.transform([0, 4, 7], operations)


def test_invalid_operator_is_reported_before_any_step () -> None:

	"""A bad letter late in the string fails even if the chord is fine so far."""

	with pytest.raises(sequenza.tonnetz.InvalidOperator):
		sequenza.tonnetz.transform([0, 4, 7], "plrz")


@pytest.mark.parametrize("chord", [[0, 2, 7], [0, 5, 9], [0], []])
def test_invalid_chords (chord: list) -> None:

	with pytest.raises(sequenza.tonnetz.InvalidChord):
		sequenza.tonnetz.transform(chord, "p")


def test_errors_are_value_errors () -> None:

	assert issubclass(sequenza.tonnetz.InvalidOperator, ValueError)
	assert issubclass(sequenza.tonnetz.InvalidChord, ValueError)
	assert issubclass(sequenza.tonnetz.CycleDidNotClose, ValueError)


# Position-qualified operators


def test_qualifier_12_on_a_triad_is_the_plain_letter () -> None:

	for letter in LETTERS:
		assert sequenza.tonnetz.transform([0, 4, 7], f"{letter}12") == sequenza.tonnetz.transform([0, 4, 7], letter)


def test_qualified_pair_leaves_other_tones_alone () -> None:

	"""p23 reads E-G as a minor third and turns it major; C stays."""

	assert sequenza.tonnetz.transform([0, 4, 7], "p23") == [0, 4, 8]


def test_qualifier_beyond_chord_size () -> None:

	with pytest.raises(sequenza.tonnetz.InvalidChord):
		sequenza.tonnetz.transform([0, 4, 7], "p14")


def test_qualified_pair_must_be_a_third () -> None:

	with pytest.raises(sequenza.tonnetz.InvalidChord):
		sequenza.tonnetz.transform([0, 4, 7], "p13")


def test_seventh_chord_parallel () -> None:

	"""C7 -> Cm7 -> Cø7 through the two lower thirds."""

	assert sequenza.tonnetz.transform([0, 4, 7, 10], "p12") == [0, 3, 7, 10]
	assert sequenza.tonnetz.transform([0, 3, 7, 10], "p23") == [0, 3, 6, 10]


def test_seventh_chord_fifth_rule () -> None:

	"""l13 reads C-G as the fifth of a dominant seventh and rebuilds the whole chord."""

	assert sequenza.tonnetz.transform([0, 4, 7, 10], "l13") == [4, 7, 10, 2]
	assert sequenza.tonnetz.transform([0, 3, 6, 10], "l13") == [8, 0, 3, 6]


@pytest.mark.parametrize("operator", ["p12", "p23", "p34", "r12", "l23", "l13", "p13", "t13"])
def test_qualified_operators_are_involutions_on_sevenths (operator: str) -> None:

	for chord in ([0, 4, 7, 10], [0, 3, 6, 10]):

		try:
			once = sequenza.tonnetz.transform(chord, operator)
		except sequenza.tonnetz.InvalidChord:
			continue

		assert sequenza.tonnetz.transform(once, operator) == chord


def test_tetrad_with_no_reading_for_13 () -> None:

	"""C-D is neither a third nor a seventh-chord fifth."""

	with pytest.raises(sequenza.tonnetz.InvalidChord):
		sequenza.tonnetz.transform([0, 4, 2, 10], "p13")


# Cycles


def test_hexatonic_cycle () -> None:

	chords = sequenza.tonnetz.cycle(0, "hexatonic")

	assert chords == [[0, 4, 7], [0, 3, 7], [8, 0, 3], [8, 11, 3], [4, 8, 11], [4, 7, 11]]


def test_octatonic_cycle () -> None:

	chords = sequenza.tonnetz.cycle(0, "octatonic")

	assert len(chords) == 8
	assert chords[:4] == [[0, 4, 7], [0, 3, 7], [3, 7, 10], [3, 6, 10]]


def test_ennea_cycle () -> None:

	"""Nine seventh chords: C7 Cm7 Cø7 Ab7 Abm7 Abø7 E7 Em7 Eø7."""

	assert sequenza.tonnetz.ennea_cycle(0) == [
		[0, 4, 7, 10],
		[0, 3, 7, 10],
		[0, 3, 6, 10],
		[8, 0, 3, 6],
		[8, 11, 3, 6],
		[8, 11, 2, 6],
		[4, 8, 11, 2],
		[4, 7, 11, 2],
		[4, 7, 10, 2],
	]


@pytest.mark.parametrize("kind, size", [("hexatonic", 6), ("octatonic", 8), ("ennea", 9)])
def test_cycles_close_on_every_root (kind: str, size: int) -> None:

	for root in range(12):

		chords = sequenza.tonnetz.cycle(root, kind)

		assert len(chords) == size
		assert len({tuple(chord) for chord in chords}) == size
		assert chords[0] == sequenza.tonnetz.seed_chord(root, kind)


def test_cycle_helpers_match_cycle () -> None:

	assert sequenza.tonnetz.hexatonic_cycle(5) == sequenza.tonnetz.cycle(5, "hexatonic")
	assert sequenza.tonnetz.octatonic_cycle(5) == sequenza.tonnetz.cycle(5, "octatonic")


def test_unknown_cycle_kind () -> None:

	with pytest.raises(ValueError):
		sequenza.tonnetz.cycle(0, "dodecatonic")


def test_cycle_that_breaks_in_another_space () -> None:

	"""With a fifth of 8 the second and third tones of Cm7 stop forming a third."""

	with pytest.raises(sequenza.tonnetz.CycleDidNotClose):
		sequenza.tonnetz.cycle(0, "ennea", (3, 4, 4))


def test_cycles_in_a_custom_space () -> None:

	"""Thirds of 2 and 5: triads rebuild from those steps and p, l walk all 24 triads."""

	space = sequenza.tonnetz.Space(minor=2, major=5, fourth=5)

	assert sequenza.tonnetz.transform([0, 5, 7], "p", space) == [0, 2, 7]
	assert sequenza.tonnetz.transform([0, 2, 7], "p", space) == [0, 5, 7]
	assert len(sequenza.tonnetz.cycle(0, "hexatonic", space)) == 24


# Spaces and chord stacks


def test_default_space () -> None:

	assert sequenza.tonnetz.DEFAULT_SPACE == sequenza.tonnetz.Space(3, 4, 5)
	assert sequenza.tonnetz.DEFAULT_SPACE.fifth == 7


def test_space_from_tuple () -> None:

	assert sequenza.tonnetz.as_space((3, 4, 5)) == sequenza.tonnetz.DEFAULT_SPACE
	assert sequenza.tonnetz.as_space(None) is sequenza.tonnetz.DEFAULT_SPACE
	assert sequenza.tonnetz.as_space((2, 5, 5)) == sequenza.tonnetz.Space(2, 5, 5)

	with pytest.raises(ValueError):
		sequenza.tonnetz.as_space((3, 4))


def test_chord_intervals () -> None:

	assert sequenza.tonnetz.chord_intervals("M") == [0, 4, 7]
	assert sequenza.tonnetz.chord_intervals("minor") == [0, 3, 7]
	assert sequenza.tonnetz.chord_intervals("7") == [0, 4, 7, 10]
	assert sequenza.tonnetz.chord_intervals("m7b5") == [0, 3, 6, 10]
	assert sequenza.tonnetz.chord_intervals("maj7") == [0, 4, 7, 11]

	with pytest.raises(ValueError):
		sequenza.tonnetz.chord_intervals("sus4")


@pytest.mark.parametrize("chord, rotation", [
	([0, 4, 7], 0),
	([4, 7, 0], 2),
	([7, 0, 4], 1),
	([3, 7, 0], 2),
	([10, 0, 4, 7], 1),
	([11, 2, 5, 9], 0),
	([0, 2, 7], 0),
])
def test_root_position (chord: list, rotation: int) -> None:

	assert sequenza.tonnetz.root_position(chord) == rotation
