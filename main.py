#!/usr/bin/env python3
"""Music Tools demo - renders short musical examples to the speakers or a WAV file."""
import argparse
import logging
import sys

from audio.player import AudioPlayer
from audio.synth_engine import WavetableOscillator
from config_manager import ConfigManager
from midi.midi_file import MIDI
from music.chord_library import Chord
from music.errors import MusicToolsError
from music.playable import ArpeggioDirection
from music.preset_manager import PresetManager
from music.rhythm import Beat
from music.scale import Scale

PROGRESSION = ["IV", "V", "iii", "vi", "I", "bVI", "bVII", "I"]
MELODY = ["E4", "D4", "C4", "D4", "E4", "E4", "E4", "D4", "D4", "D4", "E4", "G4", "G4"]
MELODY_RHYTHM = [Beat.QUARTER, Beat.QUARTER, Beat.QUARTER, Beat.QUARTER, Beat.QUARTER,
                 Beat.QUARTER, Beat.HALF]


def queue_melody(player: AudioPlayer, args):
    player.push_rhythm(MELODY, MELODY_RHYTHM, len(MELODY))


def queue_progression(player: AudioPlayer, args):
    for index, numeral in enumerate(PROGRESSION):
        base_note = "C4" if index < len(PROGRESSION) - 1 else "C5"
        chord = Chord.from_numeral(numeral, base_note)
        player.push_arpeggiate(chord, Beat.SIXTEENTH, ArpeggioDirection.UP, 8)


def queue_wavetable(player: AudioPlayer, args):
    # Each waveform plays the same ascending scale
    for waveform in ("sine", "triangle", "square", "sawtooth"):
        player.set_synth(WavetableOscillator(waveform))
        player.push_arpeggiate(Scale("C", "major"), Beat.EIGHTH, ArpeggioDirection.UP_DOWN, 15)
        player.push_rest(Beat.QUARTER)


def queue_midi(player: AudioPlayer, args):
    midi = MIDI.import_file(args.file)
    player.push_midi(midi, player.synth_handle.synth.copy(), tempo=args.tempo)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", help="settings file (default: $MUSIC_TOOLS_CONFIG or config.json)")
    parser.add_argument("--preset", help="synth preset name")
    parser.add_argument("--tempo", type=float, help="quarter notes per minute")
    parser.add_argument("--export", metavar="PATH", help="write the rendered audio to a WAV file")
    parser.add_argument("--bits", type=int, choices=(8, 16, 24), help="WAV bit depth")
    parser.add_argument("--no-play", action="store_true", help="do not open the audio device")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("melody", help="a short melody driven by a rhythm pattern").set_defaults(queue=queue_melody)
    subparsers.add_parser("progression", help="arpeggiated chord progression").set_defaults(queue=queue_progression)
    subparsers.add_parser("wavetable", help="the built-in waveforms in turn").set_defaults(queue=queue_wavetable)
    midi_parser = subparsers.add_parser("midi", help="render a Standard MIDI File")
    midi_parser.add_argument("file")
    midi_parser.set_defaults(queue=queue_midi)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ConfigManager(args.config)
    try:
        synth = PresetManager().build_synth(args.preset or config.get_synth_preset())
        player = AudioPlayer.from_config(config, synth=synth, open_device=not args.no_play)
        if args.tempo:
            player.set_tempo(args.tempo)
        args.queue(player, args)
        if args.export:
            player.export(args.export, args.bits or config.get_bits_per_sample())
        if not args.no_play:
            player.play()
        player.close()
    except MusicToolsError as e:
        logging.getLogger("music_tools").error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
