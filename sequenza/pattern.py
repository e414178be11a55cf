"""The sequence engine.

A ``Pattern`` parses notation once, evaluates it into a flat list of events
and hands them out one at a time with ``next()``. Transformations
(``retrograde``, ``lead``, the Tonnetz family) rewrite that list in place and
return the pattern, so calls chain:

	```python
	p = pattern("0 2 4").tonnetz_chords("M").hexa_cycle()
	```

Transformations are remembered. When the events are evaluated again, after
``apply_options()`` or after a numeral generator rewrites the text, the
standing transformations are replayed in the order they were first called.

A pattern that fails to parse or evaluate never raises from the
constructor: the error is logged, stored on ``error`` and the pattern is
empty. ``next()`` on an empty pattern returns ``None`` and does not advance.

Patterns are mutable and not safe to share between callers that transform
them. Take a ``clone()`` first.
"""

import fractions
import functools
import logging
import typing

import sequenza.chords
import sequenza.events
import sequenza.intervals
import sequenza.midi_utils
import sequenza.notation
import sequenza.numerals
import sequenza.options
import sequenza.tonnetz
import sequenza.voicings


logger = logging.getLogger(__name__)


class Pattern:

	"""A parsed, evaluated and iterable musical pattern.

	Parameters:
		text: Notation (see ``sequenza.notation``).
		options: ``Options`` or a mapping of option names to values.
		**overrides: Individual options replacing those in ``options``.

	Attributes:
		text: Current notation. Rewritten when a generator supplies a numeral.
		options: The ``Options`` in force.
		evaluated: The materialized events.
		duration: Total duration of ``evaluated`` (a ``Fraction``).
		error: The exception that left the pattern empty, or ``None``.
		index: Cursor position (-1 before the first ``next()``).
		counter: Number of events handed out so far.
		generator_exhausted: True once the numeral generator has run dry.

	Example:
		```python
		p = Pattern("0 2 4", key="D", redo=2)
		p.notes()   # [62, 66, 69]
		p.next()    # Pitch(pitch=0, note=62, ...)
		```
	"""

	def __init__ (self, text: str, options: sequenza.options.OptionsLike = None, **overrides: typing.Any) -> None:

		self.text = text
		self.options = sequenza.options.as_options(options).overlay(**overrides)

		self.nodes: typing.List[sequenza.notation.Node] = []
		self.evaluated: typing.List[sequenza.events.Event] = []
		self.duration = fractions.Fraction(0)
		self.error: typing.Optional[Exception] = None

		self.index = -1
		self.counter = 0
		self.generator_exhausted = False

		self._stream = self.options.stream()
		self._context: typing.Optional[sequenza.notation.EvaluationContext] = None
		self._transformations: typing.List[typing.Callable[["Pattern"], None]] = []

		self._build()

	# -- construction

	def _build (self) -> None:

		"""Parse ``text`` and materialize it, settling to empty on failure."""

		try:
			self.nodes = sequenza.notation.parse(self.text)
		except sequenza.notation.ParseError as exc:
			self.nodes = []
			self._fail(exc)
			return

		try:
			context = self.options.context()
		except sequenza.intervals.ScalaError as exc:
			self._fail(exc)
			return

		self._materialize(context)

	def _fail (self, exc: Exception) -> None:

		logger.error(f"Could not build pattern {self.text!r}: {exc}")

		self.error = exc
		self.evaluated = []
		self.duration = fractions.Fraction(0)

	def _materialize (self, context: sequenza.notation.EvaluationContext) -> None:

		"""Evaluate the parsed nodes, resolve subdivisions and replay transformations."""

		produced = sequenza.events.flatten([node.evaluate(context) for node in self.nodes])

		self._context = context
		self.error = None
		self.evaluated = sequenza.events.resolve_subdivisions(produced)

		if self.options.retrograde:
			self.evaluated.reverse()

		for replay in self._transformations:
			replay(self)

		self._update_duration()

	def _update_duration (self) -> None:

		self.duration = sequenza.events.total_duration(self.evaluated)

	def _builder (self) -> sequenza.chords.ChordBuilder:

		assert self._context is not None
		return sequenza.chords.ChordBuilder(self._context.key_pc, self._context.scale)

	def _transform (self, apply: typing.Callable[["Pattern"], None]) -> "Pattern":

		"""Run a transformation now and remember it for later re-evaluations."""

		if self.is_empty():
			return self

		apply(self)
		self._transformations.append(apply)
		self._update_duration()

		return self

	# -- iteration

	def next (self) -> typing.Optional[sequenza.events.Event]:

		"""Return the event under the cursor and advance.

		After ``len(evaluated) * redo`` events the loop closes: the cursor
		returns to 0 and, if a numeral generator is attached, one numeral is
		pulled to rewrite the pattern. With ``redo = 0`` the loop never closes.

		Returns:
			The next event, or ``None`` if the pattern is empty.
		"""

		if self.is_empty():
			return None

		if self.index < 0:
			self.index = 0

		length = len(self.evaluated)
		event = self.evaluated[self.index % length]

		self.index += 1
		self.counter += 1

		if self.options.redo > 0 and self.index >= length * self.options.redo:
			self.index = 0
			self._close_loop()

		return event

	def _close_loop (self) -> None:

		if self._stream is None or self.generator_exhausted:
			return

		numeral = self._stream.pull()

		if numeral is None:
			logger.info(f"Generator exhausted, repeating {self.text!r}")
			self.generator_exhausted = True
			return

		self.text = sequenza.numerals.numeral_to_text(numeral)
		self._build()

	def peek (self) -> typing.Optional[sequenza.events.Event]:

		"""Return the event ``next()`` handed out last, without advancing.

		Before the first ``next()``, and right after the loop closes, this
		is the first event.
		"""

		if self.is_empty():
			return None

		return self.evaluated[max(self.index - 1, 0) % len(self.evaluated)]

	def has_started (self) -> bool:

		return self.index >= 0

	def at_last (self) -> bool:

		"""True if the next call to ``next()`` closes the loop."""

		return self.options.redo > 0 and self.index + 1 >= len(self.evaluated) * self.options.redo

	def is_empty (self) -> bool:

		return not self.evaluated

	def __len__ (self) -> int:

		return len(self.evaluated)

	def __iter__ (self) -> typing.Iterator[sequenza.events.Event]:

		"""Iterate the materialized events once, without touching the cursor."""

		return iter(self.evaluated)

	def __repr__ (self) -> str:

		return f"Pattern({self.text!r}, events={len(self.evaluated)}, duration={self.duration})"

	# -- parallel arrays

	def collect (self, field: str) -> typing.List[typing.Any]:

		"""Collect ``field`` from every event (lists for chords, ``None`` where absent)."""

		return [event.collect(field) for event in self.evaluated]

	def pitches (self) -> typing.List[typing.Any]:

		return self.collect("pitch")

	def notes (self) -> typing.List[typing.Any]:

		return self.collect("note")

	def freqs (self) -> typing.List[typing.Any]:

		return self.collect("freq")

	def durations (self) -> typing.List[float]:

		"""Durations as floats, 1.0 = whole note. Use ``duration`` for the exact total."""

		return [float(value) for value in self.collect("duration")]

	def octaves (self) -> typing.List[typing.Any]:

		return self.collect("octave")

	# -- option changes

	def apply_options (self, **delta: typing.Any) -> "Pattern":

		"""Re-evaluate the parsed pattern with some options replaced.

		The text is not parsed again. Standing transformations are replayed
		in the order they were first called. The new options are resolved
		before anything changes, so an invalid key or scale raises and leaves
		the pattern as it was.

		Example:
			```python
			p = pattern("0 2 4").retrograde()
			p.apply_options(key="D").notes()   # [69, 66, 62]
			```
		"""

		options = self.options.overlay(**delta)
		context = options.context()

		self.options = options

		if "generator" in delta:
			self._stream = options.stream()
			self.generator_exhausted = False

		if self.nodes:
			self._materialize(context)

		return self

	def _set_option (self, name: str, value: typing.Any) -> "Pattern":

		if getattr(self.options, name) == value:
			return self

		return self.apply_options(**{name: value})

	def scale (self, scale: typing.Any) -> "Pattern":

		return self._set_option("scale", scale)

	def key (self, key: typing.Union[str, int]) -> "Pattern":

		return self._set_option("key", key)

	def octave (self, octave: int) -> "Pattern":

		return self._set_option("octave", octave)

	def invert (self, inversion: int) -> "Pattern":

		"""Invert every chord (positive raises the bass, negative lowers the top)."""

		return self._set_option("inversion", inversion)

	# -- transformations

	def retrograde (self) -> "Pattern":

		"""Reverse the event order. Calling it twice restores the original order."""

		# Two reversals in a row cancel, so neither is kept for replay.
		if not self.is_empty() and self._transformations and self._transformations[-1] is Pattern._apply_retrograde:
			self._transformations.pop()
			self._apply_retrograde()
			return self

		return self._transform(Pattern._apply_retrograde)

	def _apply_retrograde (self) -> None:

		self.evaluated.reverse()

	def lead (self) -> "Pattern":

		"""Revoice each chord to move as little as possible from the chord before it.

		Chords are compared with the previous chord in the sequence;
		pitches, rests and sounds in between are skipped over.
		"""

		return self._transform(Pattern._apply_lead)

	def _apply_lead (self) -> None:

		builder = self._builder()
		state = sequenza.voicings.VoiceLeadingState()

		for position, event in enumerate(self.evaluated):

			if not isinstance(event, sequenza.events.Chord):
				continue

			leading = state.previous_voicing is not None
			voiced = state.next(event.notes())

			if leading:
				self.evaluated[position] = builder.from_notes(voiced, event.duration)

	def tonnetz (self, operations: str, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Apply Tonnetz operators to every triad and seventh chord.

		Parameters:
			operations: Operator string, e.g. ``"plr"`` or ``"p12 l13"``.
			space: Tonnetz space (default ``(3, 4, 5)``).

		Raises:
			InvalidOperator: Before any chord is touched.

		Example:
			```python
			pattern("024").tonnetz("p").notes()   # [[60, 63, 67]]
			```
		"""

		return self._tonnetz(operations, space, (3, 4))

	def triad_tonnetz (self, operations: str, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Like ``tonnetz`` but only 3-note chords are touched."""

		return self._tonnetz(operations, space, (3,))

	def tetra_tonnetz (self, operations: str, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Like ``tonnetz`` but only 4-note chords are touched."""

		return self._tonnetz(operations, space, (4,))

	def _tonnetz (self, operations: str, space: sequenza.tonnetz.SpaceLike, arities: typing.Tuple[int, ...]) -> "Pattern":

		sequenza.tonnetz.parse_operations(operations)
		space = sequenza.tonnetz.as_space(space)

		return self._transform(functools.partial(Pattern._apply_tonnetz, operations=operations, space=space, arities=arities))

	def _apply_tonnetz (self, operations: str, space: sequenza.tonnetz.Space, arities: typing.Tuple[int, ...]) -> None:

		"""Transform each chord from its root position and voice the result in the chord's own inversion."""

		builder = self._builder()

		for position, event in enumerate(self.evaluated):

			if not isinstance(event, sequenza.events.Chord) or len(event) not in arities:
				continue

			pitch_classes = event.pitch_classes()
			rotation = sequenza.tonnetz.root_position(pitch_classes, space)
			rooted = pitch_classes[rotation:] + pitch_classes[:rotation]

			try:
				result = sequenza.tonnetz.transform(rooted, operations, space)
			except sequenza.tonnetz.InvalidChord as exc:
				logger.debug(f"Leaving chord {event.notes()} unchanged: {exc}")
				continue

			if rotation == 0:
				base = sequenza.chords.octave_base(event.notes()[0])
				self.evaluated[position] = builder.from_pitch_classes(result, base, event.duration)
				continue

			# Put the tones back in the order the inversion had them.
			inverted = result[-rotation:] + result[:-rotation]
			self.evaluated[position] = builder.stacked(inverted, event.notes()[0], event.duration)

	def tonnetz_chords (self, chord_type: str = "M", space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Replace every single pitch with a chord of ``chord_type`` built on it.

		Chord types are ``"M"``, ``"m"``, ``"7"``, ``"m7"``, ``"m7b5"`` and
		``"maj7"`` (or their long names), measured in ``space``.

		Example:
			```python
			pattern("0 3").tonnetz_chords("M").notes()   # [[60, 64, 67], [65, 69, 60]]
			```
		"""

		intervals = sequenza.tonnetz.chord_intervals(chord_type, space)

		return self._transform(functools.partial(Pattern._apply_tonnetz_chords, intervals=intervals))

	def _apply_tonnetz_chords (self, intervals: typing.List[int]) -> None:

		builder = self._builder()

		for position, event in enumerate(self.evaluated):

			if not isinstance(event, sequenza.events.Pitch):
				continue

			pitch_classes = [(event.note + interval) % 12 for interval in intervals]
			base = sequenza.chords.octave_base(event.note)
			self.evaluated[position] = builder.from_pitch_classes(pitch_classes, base, event.duration)

	def hexa_cycle (self, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Replace every pitch with the hexatonic cycle (p, l) rooted on it."""

		return self._cycle("hexatonic", space)

	def octa_cycle (self, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Replace every pitch with the octatonic cycle (p, r) rooted on it."""

		return self._cycle("octatonic", space)

	def ennea_cycle (self, space: sequenza.tonnetz.SpaceLike = sequenza.tonnetz.DEFAULT_SPACE) -> "Pattern":

		"""Replace every pitch with the nine seventh chords of the ennea cycle rooted on it."""

		return self._cycle("ennea", space)

	def _cycle (self, kind: str, space: sequenza.tonnetz.SpaceLike) -> "Pattern":

		space = sequenza.tonnetz.as_space(space)

		# A cycle closes for every root or for none, so one trial run validates the space.
		sequenza.tonnetz.cycle(0, kind, space)

		return self._transform(functools.partial(Pattern._apply_cycle, kind=kind, space=space))

	def _apply_cycle (self, kind: str, space: sequenza.tonnetz.Space) -> None:

		builder = self._builder()
		expanded: typing.List[sequenza.events.Event] = []

		for event in self.evaluated:

			if not isinstance(event, sequenza.events.Pitch):
				expanded.append(event)
				continue

			base = sequenza.chords.octave_base(event.note)

			for chord in sequenza.tonnetz.cycle(event.note % 12, kind, space):
				expanded.append(builder.from_pitch_classes(chord, base, event.duration))

		self.evaluated = expanded

	# -- copies and export

	def clone (self) -> "Pattern":

		"""Return an independent copy.

		Events are copied by value; the parsed nodes are immutable and shared.
		A numeral generator is split so both patterns see the same remaining
		numerals without taking them from each other.
		"""

		copied = Pattern.__new__(Pattern)

		copied.text = self.text
		copied.options = self.options
		copied.nodes = list(self.nodes)
		copied.evaluated = [event.copy() for event in self.evaluated]
		copied.duration = self.duration
		copied.error = self.error
		copied.index = self.index
		copied.counter = self.counter
		copied.generator_exhausted = self.generator_exhausted
		copied._stream = self._stream.split() if self._stream is not None else None
		copied._context = self._context
		copied._transformations = list(self._transformations)

		return copied

	def to_midi (self, filename: typing.Optional[str] = None, **kwargs: typing.Any) -> typing.Any:

		"""Render the events to a ``mido.MidiFile``, saving it if ``filename`` is given.

		Keyword arguments go to ``sequenza.midi_utils.to_midi_file``.
		"""

		midi_file = sequenza.midi_utils.to_midi_file(self, **kwargs)

		if filename is not None:
			midi_file.save(filename)
			logger.info(f"Saved {filename}")

		return midi_file


def pattern (text: str, options: sequenza.options.OptionsLike = None, **overrides: typing.Any) -> Pattern:

	"""Build a ``Pattern``. Shorthand for ``Pattern(text, options, **overrides)``."""

	return Pattern(text, options, **overrides)
