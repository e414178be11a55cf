"""Neo-Riemannian Tonnetz transformations.

A chord is a list of pitch classes (0-11). A triad is analysed once into a
root and a ``Quality`` and every operator letter moves that pair through a
fixed table; the result is rebuilt from ``(root, quality)`` so the output is
always a well-formed triad.

Operators (``P`` is the fifth, ``12 - fourth``):

- ``p`` parallel, ``r`` relative, ``l`` leading-tone exchange
- ``f``, ``n`` fifth moves, ``s`` slide, ``h`` hexatonic pole
- ``t`` tritone transposition (keeps the quality)

Letters compose left to right: ``transform([0, 4, 7], "pr")`` applies ``p``
then ``r``. A letter may carry two 1-based positions (``"p12 l13"``) naming
the tones that play root and third in a larger chord.

Example:
	```python
	from sequenza.tonnetz import transform, cycle

	transform([0, 4, 7], "r")       # [9, 0, 4]
	transform([0, 4, 7], "plr")     # [5, 8, 0]
	cycle(0, "hexatonic")           # six triads, C major first
	```
"""

import dataclasses
import enum
import itertools
import re
import typing


class TonnetzError(ValueError):
	pass


class InvalidOperator(TonnetzError):
	pass


class InvalidChord(TonnetzError):
	pass


class CycleDidNotClose(TonnetzError):
	pass


class Quality(enum.Enum):

	"""The major/minor character of a triad."""

	MAJOR = "major"
	MINOR = "minor"

	def flipped (self) -> "Quality":

		"""Return the opposite quality."""

		return Quality.MINOR if self is Quality.MAJOR else Quality.MAJOR


@dataclasses.dataclass(frozen=True)
class Space:

	"""
	Interval parameters of a generalised Tonnetz.

	``minor`` and ``major`` are the two third steps; ``fourth`` is the step
	whose complement is the fifth used to rebuild triads.
	"""

	minor: int = 3
	major: int = 4
	fourth: int = 5

	@property
	def fifth (self) -> int:

		"""The fifth step, ``12 - fourth``."""

		return 12 - self.fourth

	def third (self, quality: Quality) -> int:

		"""Return the third step for a quality."""

		return self.major if quality is Quality.MAJOR else self.minor


DEFAULT_SPACE = Space()

SpaceLike = typing.Union[Space, typing.Sequence[int]]

OPERATOR_LETTERS = "prlfnsht"

MAX_CYCLE_STEPS = 24

CYCLE_OPERATORS: typing.Dict[str, typing.Tuple[str, ...]] = {
	"hexatonic": ("p", "l"),
	"octatonic": ("p", "r"),
	"ennea": ("p12", "p23", "l13"),
}

_TOKEN = re.compile(r"(?P<letter>[A-Za-z])(?P<positions>\d*)")
_SEPARATORS = re.compile(r"[\s,]+")


@dataclasses.dataclass(frozen=True)
class Operator:

	"""One operator letter with the two chord positions it acts on (1-based)."""

	letter: str
	positions: typing.Tuple[int, int] = (1, 2)

	def __str__ (self) -> str:

		if self.positions == (1, 2):
			return self.letter

		return f"{self.letter}{self.positions[0]}{self.positions[1]}"


def as_space (space: typing.Optional[SpaceLike]) -> Space:

	"""Accept a ``Space``, an ``(m, M, f)`` triple, or ``None`` for the default."""

	if space is None:
		return DEFAULT_SPACE

	if isinstance(space, Space):
		return space

	values = tuple(space)

	if len(values) != 3 or not all(isinstance(v, int) for v in values):
		raise ValueError(f"A Tonnetz space needs three integer steps (m, M, f), got {space!r}")

	return Space(*values)


def parse_operations (operations: str) -> typing.List[Operator]:

	"""Split an operator string into validated ``Operator`` tokens.

	Parameters:
		operations: Letters from ``prlfnsht``, each optionally followed by two
			position digits. Whitespace and commas are ignored.

	Raises:
		InvalidOperator: Empty input, unknown letters, or malformed positions.

	Example:
		```python
		parse_operations("p12 l13")  # [Operator('p', (1, 2)), Operator('l', (1, 3))]
		```
	"""

	text = _SEPARATORS.sub("", operations or "")

	if not text:
		raise InvalidOperator("Empty Tonnetz operator string")

	tokens: typing.List[Operator] = []
	position = 0

	while position < len(text):

		match = _TOKEN.match(text, position)

		if match is None:
			raise InvalidOperator(f"Unexpected {text[position]!r} in operator string {operations!r}")

		letter = match.group("letter").lower()
		digits = match.group("positions")

		if letter not in OPERATOR_LETTERS:
			raise InvalidOperator(f"Unknown Tonnetz operator {match.group('letter')!r} in {operations!r}")

		if digits:

			if len(digits) != 2:
				raise InvalidOperator(f"Operator {letter!r} needs exactly two position digits, got {digits!r}")

			first, second = int(digits[0]), int(digits[1])

			if first == 0 or second == 0 or first == second:
				raise InvalidOperator(f"Invalid positions {digits!r} for operator {letter!r}")

			tokens.append(Operator(letter, (first, second)))

		else:
			tokens.append(Operator(letter))

		position = match.end()

	return tokens


def root_motion (letter: str, space: Space) -> typing.Tuple[int, int]:

	"""Return the root shift of ``letter`` for a major and a minor chord."""

	m, M, P = space.minor, space.major, space.fifth

	table = {
		"p": (0, 0),
		"r": (-m, m),
		"l": (M, -M),
		"f": (P, -P),
		"n": (-P, P),
		"s": (M - m, m - M),
		"h": (-M, M),
		"t": (6, 6),
	}

	return table[letter]


def step (letter: str, root: int, quality: Quality, space: SpaceLike = DEFAULT_SPACE) -> typing.Tuple[int, Quality]:

	"""Apply one operator letter to a ``(root, quality)`` pair."""

	space = as_space(space)
	major_shift, minor_shift = root_motion(letter, space)
	shift = major_shift if quality is Quality.MAJOR else minor_shift

	new_quality = quality if letter == "t" else quality.flipped()

	return (root + shift) % 12, new_quality


def quality_of (root: int, third: int, space: SpaceLike = DEFAULT_SPACE) -> Quality:

	"""Classify the interval from ``root`` to ``third``."""

	space = as_space(space)
	interval = (third - root) % 12

	if interval == space.major % 12:
		return Quality.MAJOR

	if interval == space.minor % 12:
		return Quality.MINOR

	raise InvalidChord(f"Interval {interval} between {root} and {third} is not a third in {space}")


def analyze (chord: typing.Sequence[int], space: SpaceLike = DEFAULT_SPACE) -> typing.Tuple[int, Quality]:

	"""Return ``(root, quality)`` for a chord read from its first two tones."""

	tones = normalize(chord)

	if len(tones) < 2:
		raise InvalidChord(f"Cannot derive a quality from {list(chord)!r}")

	return tones[0], quality_of(tones[0], tones[1], space)


def triad (root: int, quality: Quality, space: SpaceLike = DEFAULT_SPACE) -> typing.List[int]:

	"""Rebuild a triad from its root and quality."""

	space = as_space(space)

	return [root % 12, (root + space.third(quality)) % 12, (root + space.fifth) % 12]


def seventh (root: int, quality: Quality, space: SpaceLike = DEFAULT_SPACE) -> typing.List[int]:

	"""Rebuild a seventh chord: dominant for major, half-diminished for minor."""

	space = as_space(space)
	m, M, P = space.minor, space.major, space.fifth

	if quality is Quality.MAJOR:
		intervals = [0, M, P, P + m]
	else:
		intervals = [0, m, 2 * m, 2 * m + M]

	return [(root + i) % 12 for i in intervals]


def normalize (chord: typing.Sequence[int]) -> typing.List[int]:

	"""Return the chord's tones as pitch classes."""

	return [int(tone) % 12 for tone in chord]


def root_position (chord: typing.Sequence[int], space: SpaceLike = DEFAULT_SPACE) -> int:

	"""Return how far to rotate ``chord`` so that its root comes first.

	A triad is in root position when it reads third then fifth from its first
	tone; a four-note chord when it reads as a seventh chord that ``seventh``
	or ``chord_intervals`` can build. Chords with no such rotation return 0.

	Example:
		```python
		root_position([4, 7, 0])   # 2 - [0, 4, 7] is C major
		root_position([7, 0, 4])   # 1
		```
	"""

	space = as_space(space)
	tones = normalize(chord)
	m, M, P = space.minor, space.major, space.fifth
	thirds = (m % 12, M % 12)

	for rotation in range(len(tones)):

		rotated = tones[rotation:] + tones[:rotation]
		steps = [(tone - rotated[0]) % 12 for tone in rotated[1:]]

		if len(rotated) == 3 and steps[0] in thirds and steps[1] == P % 12:
			return rotation

		if len(rotated) == 4:

			if steps[0] in thirds and steps[1] == P % 12:
				return rotation

			if steps[:2] == [m % 12, (2 * m) % 12]:
				return rotation

	return 0


def _is_triad_step (tones: typing.List[int], operator: Operator) -> bool:

	return len(tones) == 3 and operator.positions == (1, 2)


def _apply_qualified (tones: typing.List[int], operator: Operator, space: Space) -> typing.List[int]:

	first, second = operator.positions

	if max(first, second) > len(tones):
		raise InvalidChord(f"Operator {operator} addresses a tone beyond the {len(tones)}-note chord {tones}")

	root, other = tones[first - 1], tones[second - 1]
	interval = (other - root) % 12

	if interval not in (space.major % 12, space.minor % 12) and (first, second) == (1, 3) and len(tones) == 4:

		# Seventh chords read from root and fifth are rebuilt whole.
		if interval == space.fifth % 12:
			quality = Quality.MAJOR
		elif interval == (2 * space.minor) % 12:
			quality = Quality.MINOR
		else:
			raise InvalidChord(f"Tones {root} and {other} of {tones} are neither a third nor a seventh-chord fifth")

		new_root, new_quality = step(operator.letter, root, quality, space)
		return seventh(new_root, new_quality, space)

	quality = quality_of(root, other, space)
	new_root, new_quality = step(operator.letter, root, quality, space)

	result = list(tones)
	result[first - 1] = new_root
	result[second - 1] = (new_root + space.third(new_quality)) % 12

	return result


def transform (chord: typing.Sequence[int], operations: str, space: SpaceLike = DEFAULT_SPACE) -> typing.List[int]:

	"""Apply a string of Tonnetz operators to a chord.

	The operator string is validated in full before any step runs, so a bad
	letter never yields a half-transformed result.

	Parameters:
		chord: Pitch classes; the first two tones must form a major or minor
			third for unqualified letters.
		operations: Operator letters applied left to right (e.g. ``"plr"``,
			``"p12 l13"``).
		space: ``Space`` or ``(m, M, f)`` triple (default ``(3, 4, 5)``).

	Returns:
		The transformed chord as a new list of pitch classes.

	Raises:
		InvalidOperator: The operator string is malformed.
		InvalidChord: A step cannot derive a quality from the chord.

	Example:
		```python
		transform([0, 4, 7], "p")    # [0, 3, 7]
		transform([0, 4, 7], "pr")   # [3, 7, 10]
		transform([0, 4, 7, 10], "p12")   # [0, 3, 7, 10]
		```
	"""

	space = as_space(space)
	tokens = parse_operations(operations)
	tones = normalize(chord)

	if len(tones) < 2:
		raise InvalidChord(f"Cannot transform {list(chord)!r}: a chord needs at least two tones")

	# Chord size never changes, so runs of plain triad steps can be grouped up front.
	for is_triad, group in itertools.groupby(tokens, key=lambda token: _is_triad_step(tones, token)):

		if is_triad:
			root, quality = analyze(tones, space)

			for token in group:
				root, quality = step(token.letter, root, quality, space)

			tones = triad(root, quality, space)

		else:
			for token in group:
				tones = _apply_qualified(tones, token, space)

	return tones


def seed_chord (root_pc: int, kind: str, space: SpaceLike = DEFAULT_SPACE) -> typing.List[int]:

	"""Return the starting chord of a cycle: a major triad, or a dominant seventh for ``ennea``."""

	if kind == "ennea":
		return seventh(root_pc, Quality.MAJOR, space)

	return triad(root_pc, Quality.MAJOR, space)


def cycle (root_pc: int, kind: str, space: SpaceLike = DEFAULT_SPACE) -> typing.List[typing.List[int]]:

	"""Generate a closed chord cycle.

	Starts from the seed chord on ``root_pc`` and applies the operators of
	``kind`` in rotation until the seed comes back. The seed is the first
	element; its repeat is not included.

	Parameters:
		root_pc: Root pitch class of the seed chord.
		kind: ``"hexatonic"`` (p, l), ``"octatonic"`` (p, r) or ``"ennea"``
			(p12, p23, l13 over a dominant seventh).
		space: Tonnetz space (default ``(3, 4, 5)``).

	Returns:
		The chords of the cycle in order (6, 8 and 9 of them in the
		default space).

	Raises:
		CycleDidNotClose: The orbit did not return to the seed within
			24 steps, or an operator stopped applying.
		ValueError: Unknown cycle kind.
	"""

	if kind not in CYCLE_OPERATORS:
		raise ValueError(f"Unknown cycle kind {kind!r}. Available: {sorted(CYCLE_OPERATORS)}")

	space = as_space(space)
	seed = seed_chord(root_pc, kind, space)
	operators = itertools.cycle(CYCLE_OPERATORS[kind])

	chords = [seed]
	current = seed

	for count in range(1, MAX_CYCLE_STEPS + 1):

		operator = next(operators)

		try:
			current = transform(current, operator, space)
		except InvalidChord as exc:
			raise CycleDidNotClose(f"{kind} cycle in {space} broke at step {count}: {exc}") from exc

		if current == seed:
			return chords

		chords.append(current)

	raise CycleDidNotClose(f"{kind} cycle on {root_pc} did not close within {MAX_CYCLE_STEPS} steps in {space}")


def hexatonic_cycle (root_pc: int, space: SpaceLike = DEFAULT_SPACE) -> typing.List[typing.List[int]]:

	"""Alternate ``p`` and ``l`` from the major triad on ``root_pc``."""

	return cycle(root_pc, "hexatonic", space)


def octatonic_cycle (root_pc: int, space: SpaceLike = DEFAULT_SPACE) -> typing.List[typing.List[int]]:

	"""Alternate ``p`` and ``r`` from the major triad on ``root_pc``."""

	return cycle(root_pc, "octatonic", space)


def ennea_cycle (root_pc: int, space: SpaceLike = DEFAULT_SPACE) -> typing.List[typing.List[int]]:

	"""Rotate ``p12``, ``p23`` and ``l13`` from the dominant seventh on ``root_pc``."""

	return cycle(root_pc, "ennea", space)


def chord_intervals (chord_type: str, space: SpaceLike = DEFAULT_SPACE) -> typing.List[int]:

	"""Return the interval stack of a chord type measured in a Tonnetz space.

	Example:
		```python
		chord_intervals("M")    # [0, 4, 7]
		chord_intervals("m7")   # [0, 3, 7, 10]
		```
	"""

	space = as_space(space)
	m, M, P = space.minor, space.major, space.fifth

	stacks = {
		"major": [0, M, P],
		"minor": [0, m, P],
		"dominant_7th": [0, M, P, P + m],
		"minor_7th": [0, m, P, P + m],
		"half_diminished_7th": [0, m, 2 * m, 2 * m + M],
		"major_7th": [0, M, P, P + M],
	}

	aliases = {
		"M": "major",
		"m": "minor",
		"7": "dominant_7th",
		"m7": "minor_7th",
		"m7b5": "half_diminished_7th",
		"maj7": "major_7th",
	}

	name = aliases.get(chord_type, chord_type)

	if name not in stacks:
		raise ValueError(f"Unknown chord type {chord_type!r}. Available: {sorted(set(stacks) | set(aliases))}")

	return stacks[name]
