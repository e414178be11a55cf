"""Parser for the numeric pattern notation.

Patterns are written as scale degrees separated by spaces. Each token fills
one time slot; square brackets split a slot between their contents.

**Syntax:**
- `0`-`9`, `T`, `E`: Scale degrees (T = 10, E = 11). A leading `-` goes below the key.
- `024`: Degrees run together form a chord.
- `i` ... `vii`: A chord of stacked thirds on that degree; `v7` adds the seventh.
  After a duration prefix the numeral must be uppercase (`hIV`, `qV7`), so
  words such as `hi` stay sound names.
- `r`: A rest.
- `w h q e s t f`: Whole down to sixty-fourth durations. Alone they set the
  duration of everything after them; as a prefix (`e0`, `q.024`) they apply
  to that token only. Dots extend by half.
- `^` / `_`: Octave up / down (repeatable, per tone: `0^24`).
- `#` / `b`: Sharpen / flatten a tone.
- `[a b]`: Groups items into a single subdivided slot.
- `{10 11 -3}`: Whole numbers, each its own pitch.
- `kick`, `hh`: Any other word is a named sound event.

Example:
	```python
	nodes = parse("q 0 [2 4] e024 r")
	```
"""

import dataclasses
import fractions
import re
import typing

import sequenza.events
import sequenza.intervals
import sequenza.voicings


class ParseError(Exception):
	pass


DURATION_LETTERS: typing.Dict[str, fractions.Fraction] = {
	"w": fractions.Fraction(1),
	"h": fractions.Fraction(1, 2),
	"q": fractions.Fraction(1, 4),
	"e": fractions.Fraction(1, 8),
	"s": fractions.Fraction(1, 16),
	"t": fractions.Fraction(1, 32),
	"f": fractions.Fraction(1, 64),
}

DEGREE_CHARACTERS: typing.Dict[str, int] = {str(i): i for i in range(10)}
DEGREE_CHARACTERS.update({"T": 10, "E": 11})

ROMAN_NUMERALS: typing.Dict[str, int] = {
	"i": 1,
	"ii": 2,
	"iii": 3,
	"iv": 4,
	"v": 5,
	"vi": 6,
	"vii": 7,
}

_DURATION = r"(?P<duration>[whqestf]\.*)"
_TONE = re.compile(r"(?P<octave>[\^_]*)(?P<accidental>[#b]*)(?P<sign>-?)(?P<degree>[0-9TE])")
_STANDALONE_DURATION = re.compile(r"^[whqestf]\.*$")
_REST = re.compile(rf"^{_DURATION}?r$")
_ROMAN = re.compile(rf"^(?:{_DURATION}(?=[\^_]*[IV]))?(?P<octave>[\^_]*)(?P<roman>vii|vi|v|iv|iii|ii|i|VII|VI|V|IV|III|II|I)(?P<seventh>7?)$")
_PITCHES = re.compile(rf"^{_DURATION}?(?P<tones>(?:[\^_]*[#b]*-?[0-9TE])+)$")
_SOUND = re.compile(r"^[A-Za-z][A-Za-z_]*[0-9]*$")
_INTEGER = re.compile(r"^-?[0-9]+$")


@dataclasses.dataclass
class EvaluationContext:

	"""
	Everything a node needs to turn degrees into notes.
	"""

	key_pc: int
	scale: sequenza.intervals.Scale
	octave: int = 4
	duration: fractions.Fraction = fractions.Fraction(1, 4)
	inversion: int = 0


@dataclasses.dataclass(frozen=True)
class PitchNode:

	degree: int
	octave: int = 0
	accidental: int = 0
	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> sequenza.events.Pitch:

		note, bend, octave = sequenza.intervals.pitch_from_degree(
			context.key_pc,
			self.degree,
			context.scale,
			context.octave + self.octave
		)

		return sequenza.events.Pitch(
			pitch = self.degree,
			note = note + self.accidental,
			duration = self.duration if self.duration is not None else context.duration,
			octave = octave,
			bend = bend,
		)


@dataclasses.dataclass(frozen=True)
class ChordNode:

	tones: typing.Tuple[PitchNode, ...]
	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> sequenza.events.Chord:

		duration = self.duration if self.duration is not None else context.duration
		pitches = [dataclasses.replace(tone.evaluate(context), duration=duration) for tone in self.tones]

		if context.inversion:
			by_note = {pitch.note: pitch for pitch in pitches}
			inverted = sequenza.voicings.invert_notes([pitch.note for pitch in pitches], context.inversion)
			pitches = [_moved(by_note, note) for note in inverted]

		return sequenza.events.Chord(pitches=pitches, duration=duration)


def _moved (by_note: typing.Dict[int, sequenza.events.Pitch], note: int) -> sequenza.events.Pitch:

	"""Return the pitch that sounds at ``note`` after an octave move."""

	for original, pitch in by_note.items():
		shift, remainder = divmod(note - original, 12)
		if remainder == 0:
			return dataclasses.replace(pitch, note=note, octave=pitch.octave + shift)

	raise ValueError(f"No chord tone maps to note {note}")


@dataclasses.dataclass(frozen=True)
class RomanNode:

	"""A diatonic chord of stacked thirds on ``degree`` (zero-based)."""

	degree: int
	seventh: bool = False
	octave: int = 0
	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> sequenza.events.Chord:

		count = 4 if self.seventh else 3
		tones = tuple(PitchNode(degree=self.degree + 2 * i, octave=self.octave) for i in range(count))

		return ChordNode(tones=tones, duration=self.duration).evaluate(context)


@dataclasses.dataclass(frozen=True)
class RestNode:

	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> sequenza.events.Rest:

		return sequenza.events.Rest(duration=self.duration if self.duration is not None else context.duration)


@dataclasses.dataclass(frozen=True)
class SoundNode:

	name: str
	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> sequenza.events.SoundEvent:

		return sequenza.events.SoundEvent(name=self.name, duration=self.duration if self.duration is not None else context.duration)


@dataclasses.dataclass(frozen=True)
class NumberListNode:

	"""Whole-number degrees written in braces; evaluates to one pitch per number."""

	pitches: typing.Tuple[PitchNode, ...]

	def evaluate (self, context: EvaluationContext) -> typing.List[sequenza.events.Pitch]:

		return [pitch.evaluate(context) for pitch in self.pitches]


@dataclasses.dataclass(frozen=True)
class SubdivisionNode:

	children: typing.Tuple[typing.Any, ...]
	duration: typing.Optional[fractions.Fraction] = None

	def evaluate (self, context: EvaluationContext) -> typing.Optional[sequenza.events.Subdivision]:

		children = sequenza.events.flatten([child.evaluate(context) for child in self.children])

		if not children:
			return None

		return sequenza.events.Subdivision(
			children = children,
			duration = self.duration if self.duration is not None else context.duration,
		)


Node = typing.Union[PitchNode, ChordNode, RomanNode, RestNode, SoundNode, NumberListNode, SubdivisionNode]


@dataclasses.dataclass
class _Group:

	opener: str
	items: typing.List[typing.Any] = dataclasses.field(default_factory=list)


_CLOSERS = {"[": "]", "{": "}"}


def parse (text: str) -> typing.List[Node]:

	"""Parse notation into a list of nodes, one per time slot.

	Parameters:
		text: The notation string.

	Returns:
		AST nodes; call ``evaluate(context)`` on each to get events.

	Raises:
		ParseError: Malformed notation (unbalanced brackets, unknown tokens,
			empty input, durations inside a subdivision).

	Example:
		```python
		parse("0 [1 2]")  # [PitchNode(0), SubdivisionNode((PitchNode(1), PitchNode(2)))]
		```
	"""

	tokens = _tokenize(text)

	if not tokens:
		raise ParseError("Empty pattern")

	nodes, _ = _parse_items(tokens, None, inside_subdivision=False)

	return nodes


def _tokenize (text: str) -> typing.List[typing.Any]:

	"""
	Convert string into nested groups of tokens.
	"a [b c]" -> ["a", _Group("[", ["b", "c"])]
	"""

	# Add spaces around brackets to make splitting easier
	for bracket in "[]{}":
		text = text.replace(bracket, f" {bracket} ")

	raw_tokens = text.split()

	stack: typing.List[_Group] = [_Group("")]

	for token in raw_tokens:

		if token in _CLOSERS:

			if stack[-1].opener == "{":
				raise ParseError("Brackets are not allowed inside a number list")

			new_group = _Group(token)
			stack[-1].items.append(new_group)
			stack.append(new_group)

		elif token in ("]", "}"):

			if len(stack) <= 1 or _CLOSERS[stack[-1].opener] != token:
				raise ParseError(f"Unexpected closing bracket {token!r}")

			stack.pop()

		else:
			stack[-1].items.append(token)

	if len(stack) > 1:
		raise ParseError("Missing closing bracket")

	return stack[0].items


def _parse_items (
	items: typing.List[typing.Any],
	current_duration: typing.Optional[fractions.Fraction],
	inside_subdivision: bool
) -> typing.Tuple[typing.List[Node], typing.Optional[fractions.Fraction]]:

	"""
	Turn tokens into nodes, carrying a standing duration forward.
	"""

	nodes: typing.List[Node] = []

	for item in items:

		if isinstance(item, _Group):

			if not item.items:
				raise ParseError("Empty subdivision" if item.opener == "[" else "Empty number list")

			if item.opener == "{":
				nodes.append(_number_list(item.items, current_duration))
				continue

			children, _ = _parse_items(item.items, None, inside_subdivision=True)
			nodes.append(SubdivisionNode(children=tuple(children), duration=current_duration))
			continue

		if _STANDALONE_DURATION.match(item):

			if inside_subdivision:
				raise ParseError(f"Durations are not allowed inside a subdivision: {item!r}")

			current_duration = parse_duration(item)
			continue

		node = _parse_token(item, current_duration)

		if inside_subdivision and getattr(node, "duration", None) is not None and node.duration != current_duration:
			raise ParseError(f"Durations are not allowed inside a subdivision: {item!r}")

		nodes.append(node)

	return nodes, current_duration


def parse_duration (token: str) -> fractions.Fraction:

	"""Return the length of a duration token such as ``"q"`` or ``"h."``.

	Example:
		```python
		parse_duration("q")    # Fraction(1, 4)
		parse_duration("q.")   # Fraction(3, 8)
		parse_duration("h..")  # Fraction(7, 8)
		```
	"""

	base = DURATION_LETTERS[token[0]]
	total = base
	addition = base

	for _ in token[1:]:
		addition /= 2
		total += addition

	return total


def _parse_token (token: str, current_duration: typing.Optional[fractions.Fraction]) -> Node:

	match = _REST.match(token)

	if match:
		return RestNode(duration=_token_duration(match, current_duration))

	match = _ROMAN.match(token)

	if match:
		return RomanNode(
			degree = ROMAN_NUMERALS[match.group("roman").lower()] - 1,
			seventh = bool(match.group("seventh")),
			octave = _octave(match.group("octave")),
			duration = _token_duration(match, current_duration),
		)

	match = _PITCHES.match(token)

	if match:
		duration = _token_duration(match, current_duration)
		tones = tuple(_tone(tone, duration) for tone in _TONE.finditer(match.group("tones")))

		if len(tones) == 1:
			return tones[0]

		return ChordNode(tones=tones, duration=duration)

	if _SOUND.match(token) and len(token) > 1:
		return SoundNode(name=token, duration=current_duration)

	raise ParseError(f"Unknown token {token!r}")


def _token_duration (match: re.Match, current_duration: typing.Optional[fractions.Fraction]) -> typing.Optional[fractions.Fraction]:

	prefix = match.group("duration")

	return parse_duration(prefix) if prefix else current_duration


def _octave (marks: str) -> int:

	return marks.count("^") - marks.count("_")


def _tone (match: re.Match, duration: typing.Optional[fractions.Fraction]) -> PitchNode:

	degree = DEGREE_CHARACTERS[match.group("degree")]
	accidentals = match.group("accidental")

	return PitchNode(
		degree = -degree if match.group("sign") else degree,
		octave = _octave(match.group("octave")),
		accidental = accidentals.count("#") - accidentals.count("b"),
		duration = duration,
	)


def _number_list (items: typing.List[typing.Any], duration: typing.Optional[fractions.Fraction]) -> NumberListNode:

	pitches = []

	for item in items:

		if not isinstance(item, str) or not _INTEGER.match(item):
			raise ParseError(f"Number lists take whole numbers only, got {item!r}")

		pitches.append(PitchNode(degree=int(item), duration=duration))

	return NumberListNode(pitches=tuple(pitches))
