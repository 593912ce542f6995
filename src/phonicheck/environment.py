"""Recording-environment check: signal-to-noise estimate from frame energies.

Advisory only. The report is attached to the analysis result and never
stops the pipeline.
"""

import logging
import math

import numpy as np

from phonicheck.types import AudioData, EnvironmentCondition, EnvironmentReport

logger = logging.getLogger(__name__)

# Fraction of frames averaged for the noise floor (quietest) and signal (loudest)
_TAIL_FRACTION = 0.15
_MIN_LEVEL = 1e-6
_MIC_FAILURE_LEVEL = 0.001
_TOO_NOISY_DB = 10

MESSAGES = {
    EnvironmentCondition.OK: "Environment is quiet. Excellent.",
    EnvironmentCondition.A_BIT_NOISY: "A bit noisy. Try to get closer to the microphone.",
    EnvironmentCondition.TOO_NOISY: "Too noisy! Please move to a quieter room.",
    EnvironmentCondition.MICROPHONE_ISSUE: "No sound detected. Check microphone permissions.",
    EnvironmentCondition.TOO_SHORT: "Audio too short.",
}


def frame_rms(samples: np.ndarray, frame_size: int) -> np.ndarray:
    """RMS of consecutive non-overlapping frames; the last frame may be partial."""
    n = len(samples)
    if n == 0:
        return np.array([])
    n_frames = math.ceil(n / frame_size)
    padded = np.zeros(n_frames * frame_size)
    padded[:n] = samples
    sums = np.sum(padded.reshape(n_frames, frame_size) ** 2, axis=1)
    counts = np.full(n_frames, frame_size, dtype=np.float64)
    counts[-1] = n - (n_frames - 1) * frame_size
    return np.sqrt(sums / counts)


class EnvironmentCheck:
    """Classify a recording as quiet, a bit noisy, too noisy, or silent."""

    def __init__(self, snr_threshold: float = 15, frame_size: int = 512):
        self.snr_threshold = snr_threshold
        self.frame_size = frame_size

    def check(self, audio: AudioData) -> EnvironmentReport:
        energies = frame_rms(audio.samples, self.frame_size)

        if len(energies) == 0:
            return self._report(0, True, 0.0, EnvironmentCondition.TOO_SHORT)

        ordered = np.sort(energies)
        tail = max(1, int(len(ordered) * _TAIL_FRACTION))
        noise_floor = float(np.mean(ordered[:tail]))
        signal_level = float(np.mean(ordered[-tail:]))

        if signal_level < _MIC_FAILURE_LEVEL:
            logger.warning(f"Near-silent recording (signal level {signal_level:.6f})")
            return self._report(0, True, 0.0, EnvironmentCondition.MICROPHONE_ISSUE)

        noise = max(noise_floor, _MIN_LEVEL)
        signal = max(signal_level, _MIN_LEVEL)
        snr = 20 * math.log10(signal / noise)

        if snr < _TOO_NOISY_DB:
            condition = EnvironmentCondition.TOO_NOISY
        elif snr < self.snr_threshold:
            condition = EnvironmentCondition.A_BIT_NOISY
        else:
            condition = EnvironmentCondition.OK

        logger.debug(
            f"SNR {snr:.1f}dB (noise {noise_floor:.5f}, signal {signal_level:.5f}) -> "
            f"{condition.value}"
        )
        return self._report(round(snr), snr < self.snr_threshold, noise_floor, condition)

    @staticmethod
    def _report(
        snr: float, is_noisy: bool, noise_floor: float, condition: EnvironmentCondition,
    ) -> EnvironmentReport:
        return EnvironmentReport(
            snr=snr,
            is_noisy=is_noisy,
            noise_floor=noise_floor,
            message=MESSAGES[condition],
            condition=condition,
        )
