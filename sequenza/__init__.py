"""
Sequenza - numeric notation and neo-Riemannian transformations for live
algorithmic composition.

A pattern is a short string of scale degrees. Sequenza parses it once,
evaluates it into pitches, chords and rests in any key and scale, and hands
the events out one at a time for as long as the performance runs. Between
loops a stream of numbers can rewrite the pattern, so a melody can follow
the digits of pi or a sensor reading.

What it does:

- **Compact notation.** ``"q 0 [2 4] e024 r"`` - degrees, chords, rests,
  durations, octave and accidental prefixes, subdivisions, roman numerals
  and named drum sounds.
- **Any scale.** Built-in modes, ``register_scale()`` for your own, and
  Scala tunings (cents or ratios) with the remainder sent as pitch bend.
- **Tonnetz algebra.** The eight operators ``p r l f n s h t`` over
  triads, position-qualified operators (``"p12 l13"``) for seventh chords,
  and closed hexatonic, octatonic and ennea cycles. Every interval of the
  lattice can be changed.
- **Chainable transforms.** ``retrograde``, ``invert``, ``lead`` (voice
  leading), ``tonnetz``, ``tonnetz_chords`` and the cycle expansions all
  rewrite a pattern in place and return it.
- **Caching.** ``PatternCache`` keeps built patterns keyed by text and
  options, with LRU and time-to-live eviction.
- **MIDI files.** ``p.to_midi("phrase.mid")`` via mido.

Minimal example:

    ```python
    import sequenza

    p = sequenza.Pattern("q 0 2 4 i", key="D", scale="dorian")
    p.tonnetz("plr").lead()

    while True:
        event = p.next()
        ...
    ```

Package-level exports: ``Pattern``, ``PatternCache``,
``Options``, ``NumeralStream``, ``transform``, ``cycle``, ``register_scale``.
"""

import sequenza.intervals
import sequenza.numerals
import sequenza.options
import sequenza.pattern
import sequenza.pattern_cache
import sequenza.tonnetz


Pattern = sequenza.pattern.Pattern
PatternCache = sequenza.pattern_cache.PatternCache
Options = sequenza.options.Options
NumeralStream = sequenza.numerals.NumeralStream
transform = sequenza.tonnetz.transform
cycle = sequenza.tonnetz.cycle
register_scale = sequenza.intervals.register_scale
