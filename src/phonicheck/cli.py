"""CLI entrypoint for phonicheck: subcommand dispatcher."""

import argparse
import json
import logging
import random
import sys
import warnings
from pathlib import Path

from phonicheck.errors import PhonicheckError


def _add_shared_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-v", "--verbose", action="store_true", default=False,
                        help="Debug logging and dependency warnings (default: quiet)")
    parser.add_argument("--json", action="store_true", default=False,
                        help="Print the full result as JSON")


def _add_word_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("word", help="Target word")
    parser.add_argument("--phonemes", nargs="+", default=None,
                        help="ARPABET phonemes, e.g. 'K AE T' (default: look up with g2p)")
    parser.add_argument("--age", type=float, default=7,
                        help="Speaker age in years, adjusts pitch and formants (default: 7)")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments with subcommands."""
    parser = argparse.ArgumentParser(
        prog="phonicheck",
        description="Pronunciation scoring for children's phonics practice",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    score_parser = subparsers.add_parser(
        "score",
        help="Score a recording against a target word",
        description="Score a WAV recording against a synthesized reference of the word",
    )
    score_parser.add_argument("audio", type=Path, help="WAV recording")
    _add_word_args(score_parser)
    _add_shared_args(score_parser)

    recognize_parser = subparsers.add_parser(
        "recognize",
        help="Decide whether the target or a similar word was said",
        description="Race the target word against phonetic neighbours",
    )
    recognize_parser.add_argument("audio", type=Path, help="WAV recording")
    _add_word_args(recognize_parser)
    recognize_parser.add_argument("--seed", type=int, default=None,
                                  help="RNG seed for distractor selection")
    recognize_parser.add_argument("--timeout", type=float, default=5.0,
                                  help="Native fallback timeout in seconds (default: 5)")
    recognize_parser.add_argument("--whisper-model", default="base",
                                  choices=["tiny", "base", "small", "medium"],
                                  help="Whisper model for the fallback (default: base)")
    recognize_parser.add_argument("--no-fallback", action="store_true", default=False,
                                  help="Skip the whisper fallback for low scores")
    _add_shared_args(recognize_parser)

    reference_parser = subparsers.add_parser(
        "reference",
        help="Write the synthesized reference for a word",
        description="Synthesize the reference audio a recording is compared against",
    )
    _add_word_args(reference_parser)
    reference_parser.add_argument("-o", "--output", type=Path, default=None,
                                  help="Output WAV path (default: <word>_reference.wav)")
    reference_parser.add_argument("--seed", type=int, default=0,
                                  help="Noise RNG seed (default: 0)")
    _add_shared_args(reference_parser)

    distractors_parser = subparsers.add_parser(
        "distractors",
        help="List shadow words for a target",
        description="Generate phonetic neighbours of a target word",
    )
    _add_word_args(distractors_parser)
    distractors_parser.add_argument("--seed", type=int, default=None,
                                    help="RNG seed for reproducible selection")
    _add_shared_args(distractors_parser)

    report_parser = subparsers.add_parser(
        "report",
        help="Summarize a practice history",
        description="Progress report from a JSON list of practice sessions",
    )
    report_parser.add_argument("history", type=Path, help="JSON practice history")
    _add_shared_args(report_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    return args


def _split_phonemes(values: list[str] | None) -> list[str] | None:
    """Accept 'K AE T', 'K-AE-T' or separate arguments."""
    if not values:
        return None
    return [p for v in values for p in v.replace("-", " ").split()]


def _require_file(path: Path) -> None:
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        sys.exit(1)


def _print_json(data: dict) -> None:
    print(json.dumps(data, indent=2))


def _run_score(args: argparse.Namespace) -> None:
    from phonicheck.analyzer import PhonemeAnalyzer
    from phonicheck.audio import read_wav
    from phonicheck.feedback import GOOD_SCORE, phoneme_tip, score_feedback, syllable_feedback

    _require_file(args.audio)
    audio = read_wav(args.audio)
    result = PhonemeAnalyzer().analyze(audio, args.word, _split_phonemes(args.phonemes), args.age)

    if args.json:
        _print_json(result.to_dict())
        return

    print(f"Word: {args.word}")
    print(f"Score: {result.overall_score}")
    print(f"  rhythm {result.rhythm_score:.1f}, formants {result.formant_score:.1f}, "
          f"pitch {result.pitch_score:.0f}")
    for p in result.phoneme_scores:
        print(f"  /{p.phoneme}/ {p.score:3d}  {p.feedback}")
    print(f"{result.feedback.message} {result.feedback.encouragement}")

    if result.microphone_issue:
        return
    band = score_feedback(result.overall_score)
    print(f"{band.message} {band.encouragement}")
    for syl in result.syllable_scores:
        print(syllable_feedback(syl))
    for p in result.phoneme_scores:
        if p.score < GOOD_SCORE:
            print(f"  Tip /{p.phoneme}/: {phoneme_tip(p.phoneme, p.score)}")


def _run_recognize(args: argparse.Namespace) -> None:
    from phonicheck.audio import read_wav
    from phonicheck.feedback import random_encouragement
    from phonicheck.recognize import (
        DistractorGenerator,
        NullRecognizer,
        WhisperRecognizer,
        WordRecognizer,
    )
    from phonicheck.types import Outcome

    _require_file(args.audio)
    audio = read_wav(args.audio)
    native = NullRecognizer() if args.no_fallback else WhisperRecognizer(args.whisper_model)
    recognizer = WordRecognizer(
        distractors=DistractorGenerator(seed=args.seed),
        native=native,
        native_timeout=args.timeout,
    )
    result = recognizer.recognize(audio, args.word, _split_phonemes(args.phonemes), args.age)

    if args.json:
        _print_json(result.to_dict())
        return

    print(f"Target: {args.word} ({result.target_score})")
    for word, score in result.distractor_scores:
        print(f"  {word} ({score})")
    print(f"Heard: {result.captured_word}")
    print(f"Result: {result.outcome.value.upper()}")
    if result.outcome != Outcome.PASS:
        print(random_encouragement(random.Random(args.seed)))


def _run_reference(args: argparse.Namespace) -> None:
    from phonicheck.audio import write_wav
    from phonicheck.lexicon import resolve_phonemes
    from phonicheck.reference import ReferenceGenerator

    phonemes = resolve_phonemes(args.word, _split_phonemes(args.phonemes))
    generator = ReferenceGenerator(seed=args.seed)
    generator.set_age(args.age)
    audio = generator.generate(args.word, phonemes)

    output = args.output or Path(f"{args.word}_reference.wav")
    write_wav(output, audio.samples, audio.sample_rate)

    if args.json:
        _print_json({
            "word": args.word,
            "phonemes": phonemes,
            "duration": audio.duration,
            "output": str(output),
        })
        return
    print(f"Wrote {output} ({'-'.join(phonemes)}, {audio.duration:.2f}s)")


def _run_distractors(args: argparse.Namespace) -> None:
    from phonicheck.lexicon import resolve_phonemes
    from phonicheck.recognize import DistractorGenerator

    phonemes = resolve_phonemes(args.word, _split_phonemes(args.phonemes))
    shadows = DistractorGenerator(seed=args.seed).generate(args.word, phonemes)

    if args.json:
        _print_json({
            "word": args.word,
            "phonemes": phonemes,
            "distractors": [s.to_dict() for s in shadows],
        })
        return
    for s in shadows:
        print(f"{s.word}  {s.type.value}")


def _run_report(args: argparse.Namespace) -> None:
    from phonicheck.feedback import achievement_message, progress_message
    from phonicheck.report import PracticeSession, generate_report

    _require_file(args.history)
    data = json.loads(args.history.read_text())
    if isinstance(data, dict):
        data = data.get("sessions", [])
    sessions = [PracticeSession.from_dict(s) for s in data]
    report = generate_report(sessions)

    if args.json:
        _print_json(report.to_dict())
        return

    print(f"Sessions: {report.total_sessions}")
    print(f"Average score: {report.average_score}")
    print(f"Consistency: {report.consistency_score}")
    print(f"Trend: {report.progress_trend}")
    if report.weakest_phonemes:
        print("Weakest: " + ", ".join(
            f"/{p.phoneme}/ {p.average_score}" for p in report.weakest_phonemes
        ))
    if report.strongest_phonemes:
        print("Strongest: " + ", ".join(
            f"/{p.phoneme}/ {p.average_score}" for p in report.strongest_phonemes
        ))
    for rec in report.recommendations:
        print(f"- {rec}")

    if sessions:
        ordered = sorted(sessions, key=lambda s: s.timestamp)
        previous = ordered[-2].score if len(ordered) > 1 else None
        print(progress_message(ordered[-1].score, previous))
    achievement = achievement_message(report.total_sessions)
    if achievement:
        print(achievement)


_COMMANDS = {
    "score": _run_score,
    "recognize": _run_recognize,
    "reference": _run_reference,
    "distractors": _run_distractors,
    "report": _run_report,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s %(levelname)s: %(message)s",
    )

    if not args.verbose:
        # Silence noisy third-party warnings
        warnings.filterwarnings("ignore", message="FP16 is not supported on CPU")
        warnings.filterwarnings("ignore", category=FutureWarning)
        logging.getLogger("numba").setLevel(logging.ERROR)
        logging.getLogger("nltk").setLevel(logging.ERROR)

    try:
        _COMMANDS[args.command](args)
    except (PhonicheckError, FileNotFoundError, json.JSONDecodeError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
