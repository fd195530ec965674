"""
Chromagram builder for key estimation.

Maps constant-Q spectral power onto the 12 pitch classes. A 2048-point
FFT bin is wider than a semitone below roughly 360 Hz, so the spectrum is
taken on a log-frequency (constant-Q) axis instead: three bins per
semitone at every register, summed into the nearest pitch class.
"""

import librosa
import numpy as np

from playlist_engine.core.models import DEFAULT_FRAME_SIZE, AudioSamples

# Lowest analysed pitch (C1); seven octaves reach C8
MIN_FREQUENCY: float = float(librosa.note_to_hz("C1"))
N_OCTAVES: int = 7

BINS_PER_OCTAVE: int = 36


class ChromagramBuilder:
    """
    Stateless chromagram builder.

    Each frame of frame_size samples yields one 12-element vector of
    spectral power summed per pitch class (index 0 = C).
    """

    def __init__(
        self,
        frame_size: int = DEFAULT_FRAME_SIZE,
        min_frequency: float = MIN_FREQUENCY,
        n_octaves: int = N_OCTAVES,
    ):
        self.frame_size = frame_size
        self.min_frequency = min_frequency
        self.n_octaves = n_octaves

    def octaves_for(self, sample_rate: int) -> int:
        """
        Octaves analysed at `sample_rate`.

        The top octave stays clear of Nyquist, and each octave below the
        first halves the hop, so frame_size must be divisible by
        2 ** (octaves - 1).
        """
        below_nyquist = int(np.floor(np.log2(0.45 * sample_rate / self.min_frequency)))
        hop_halvings = (self.frame_size & -self.frame_size).bit_length()
        return max(1, min(self.n_octaves, below_nyquist, hop_halvings))

    def build(self, samples: AudioSamples) -> np.ndarray:
        """
        Build chromagram.

        Args:
            samples: Decoded mono audio

        Returns:
            np.ndarray: Shape (n_frames, 12), one row per complete frame;
                (0, 12) when the signal is shorter than one frame
        """
        n_frames = len(samples) // self.frame_size
        if n_frames == 0:
            return np.zeros((0, 12))

        # Column i of a centred transform sits on sample i * hop; skipping
        # half a frame puts it on the middle of frame i.
        power = np.abs(
            librosa.cqt(
                samples.samples[self.frame_size // 2:],
                sr=samples.sample_rate,
                hop_length=self.frame_size,
                fmin=self.min_frequency,
                n_bins=self.octaves_for(samples.sample_rate) * BINS_PER_OCTAVE,
                bins_per_octave=BINS_PER_OCTAVE,
                tuning=0.0,
            )
        ) ** 2

        chroma = librosa.feature.chroma_cqt(
            C=power,
            sr=samples.sample_rate,
            fmin=self.min_frequency,
            norm=None,
            bins_per_octave=BINS_PER_OCTAVE,
        )
        return chroma[:, :n_frames].T
