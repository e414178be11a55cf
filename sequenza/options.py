"""Pattern options and YAML configuration.

``Options`` holds everything that changes how notation is evaluated without
changing the notation itself. Instances are never mutated; ``overlay()``
returns a copy with some fields replaced, which is how ``Pattern.apply_options``
re-evaluates a parsed pattern.

A config file may carry defaults for the command line::

	pattern:
	  key: D
	  scale: dorian
	  duration: 1/8
	cache:
	  capacity: 64
	  ttl: 120
"""

import dataclasses
import fractions
import logging
import os
import typing

import yaml

import sequenza.chords
import sequenza.intervals
import sequenza.notation
import sequenza.numerals


logger = logging.getLogger(__name__)


DurationLike = typing.Union[fractions.Fraction, int, float, str]


@dataclasses.dataclass(frozen=True)
class Options:

	"""
	Evaluation options for a pattern.

	Parameters:
		key: Note name (``"C"``, ``"F#"``, ``"Bb"``) or pitch class of degree 0.
		scale: Scale name, Scala text, ``Scale`` or list of semitone offsets.
		octave: Octave of degree 0 (4 puts C at MIDI 60).
		duration: Default length of a token, 1 = whole note. Accepts a
			``Fraction``, a number, ``"1/8"`` or a duration letter (``"e"``).
		redo: Passes through the sequence before the loop closes
			(0 never closes).
		retrograde: Reverse the sequence after every evaluation.
		inversion: Chord inversion applied to every chord.
		generator: Iterable of integers pulled at each loop closure to
			rewrite the pattern.
	"""

	key: typing.Union[str, int] = "C"
	scale: typing.Any = "major"
	octave: int = 4
	duration: DurationLike = fractions.Fraction(1, 4)
	redo: int = 1
	retrograde: bool = False
	inversion: int = 0
	generator: typing.Any = None

	def __post_init__ (self) -> None:

		if self.redo < 0:
			raise ValueError(f"redo must be 0 or more, got {self.redo}")

		object.__setattr__(self, "duration", to_duration(self.duration))

		# Validate eagerly so a bad key fails where it was written.
		self.key_pc

	@classmethod
	def from_mapping (cls, mapping: typing.Optional[typing.Mapping[str, typing.Any]]) -> "Options":

		"""Build options from a dict (e.g. a YAML section), rejecting unknown keys."""

		if not mapping:
			return cls()

		known = {field.name for field in dataclasses.fields(cls)}
		unknown = sorted(set(mapping) - known)

		if unknown:
			raise ValueError(f"Unknown pattern options: {', '.join(unknown)}")

		return cls(**dict(mapping))

	def overlay (self, **delta: typing.Any) -> "Options":

		"""Return a copy with the given fields replaced."""

		if not delta:
			return self

		return dataclasses.replace(self, **delta)

	@property
	def key_pc (self) -> int:

		"""Pitch class of the key."""

		if isinstance(self.key, int):
			return self.key % 12

		name = self.key.strip()

		return sequenza.chords.key_name_to_pc(name[:1].upper() + name[1:])

	def resolved_scale (self) -> sequenza.intervals.Scale:

		return sequenza.intervals.resolve_scale(self.scale)

	def context (self) -> sequenza.notation.EvaluationContext:

		"""Return the evaluation context the notation nodes read."""

		return sequenza.notation.EvaluationContext(
			key_pc = self.key_pc,
			scale = self.resolved_scale(),
			octave = self.octave,
			duration = self.duration,
			inversion = self.inversion,
		)

	def stream (self) -> typing.Optional[sequenza.numerals.NumeralStream]:

		"""Return the generator wrapped as a ``NumeralStream``."""

		return sequenza.numerals.as_stream(self.generator)

	def cache_key (self) -> typing.Tuple[typing.Tuple[str, typing.Any], ...]:

		"""Hashable identity of these options.

		Unhashable values (a list of offsets, a generator) are keyed by their
		content where possible and by identity otherwise.
		"""

		return tuple((field.name, freeze(getattr(self, field.name))) for field in dataclasses.fields(self))


def to_duration (value: DurationLike) -> fractions.Fraction:

	"""Convert a duration option into a ``Fraction``.

	Example:
		```python
		to_duration("e")     # Fraction(1, 8)
		to_duration("3/8")   # Fraction(3, 8)
		to_duration(0.25)    # Fraction(1, 4)
		```
	"""

	if isinstance(value, str) and value and value[0] in sequenza.notation.DURATION_LETTERS and set(value[1:]) <= {"."}:
		result = sequenza.notation.parse_duration(value)
	else:
		try:
			result = fractions.Fraction(value).limit_denominator(1 << 16)
		except (TypeError, ValueError, ZeroDivisionError) as exc:
			raise ValueError(f"Invalid duration: {value!r}") from exc

	if result <= 0:
		raise ValueError(f"Duration must be positive, got {value!r}")

	return result


def freeze (value: typing.Any) -> typing.Any:

	"""Turn nested mappings and sequences into hashable tuples."""

	if isinstance(value, typing.Mapping):
		return tuple(sorted((str(k), freeze(v)) for k, v in value.items()))

	if isinstance(value, (list, tuple)):
		return tuple(freeze(item) for item in value)

	if isinstance(value, (set, frozenset)):
		return frozenset(freeze(item) for item in value)

	try:
		hash(value)
	except TypeError:
		return ("id", id(value))

	return value


def load_config (config_path: str = "config.yaml") -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, "r") as f:
		return yaml.safe_load(f) or {}


def options_from_config (config: typing.Mapping[str, typing.Any]) -> Options:

	"""Read the ``pattern:`` section of a loaded config."""

	return Options.from_mapping(config.get("pattern") or {})


OptionsLike = typing.Union[None, Options, typing.Mapping[str, typing.Any]]


def as_options (options: OptionsLike) -> Options:

	"""Accept ``Options``, a mapping of option values, or ``None`` for the defaults."""

	if options is None:
		return Options()

	if isinstance(options, Options):
		return options

	return Options.from_mapping(options)
