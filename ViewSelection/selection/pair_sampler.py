"""
Camera Pair Sampling
====================

Two-stage weighted random choice of a (main, side) camera pair for a sampled
surface point.

A single draw rarely selects a pair. Every draw adds a vote, scaled by the
quality share of the drawn camera, to the pair's entry of a vote table; the
pair is accepted only when its accumulated vote first reaches one. Accepted
("passed") pairs are never emitted again within the same run. Cameras and
pairs that were productive before get their weights boosted, which makes
them likelier to be drawn without making the choice deterministic.
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from ..core.structures import CameraLabel, LabelledCamera
from ..core.geometry import FOCAL


def pair_key(i: int, j: int) -> Tuple[int, int]:
    """Composite key of an unordered camera pair; (i, i) is the main marker of camera i"""
    return (i, j) if i <= j else (j, i)


class PairVoteTable:
    """
    Accumulated votes of camera pairs during one selection run.

    The table belongs to a single choose_cameras() call and is discarded at
    its end, so that repeated runs are independent.
    """

    def __init__(self):
        self.votes: Dict[Tuple[int, int], float] = {}

    def vote(self, i: int, j: int) -> float:
        return self.votes.get(pair_key(i, j), 0.0)

    def add_vote(self, i: int, j: int, amount: float) -> float:
        """Add to the vote of a pair and return the new value"""
        key = pair_key(i, j)
        self.votes[key] = self.votes.get(key, 0.0) + amount
        return self.votes[key]

    def passed(self, i: int, j: int) -> bool:
        return self.vote(i, j) >= 1

    def mark_main(self, i: int):
        self.votes[pair_key(i, i)] = 1.0

    def seen_as_main(self, i: int) -> bool:
        return pair_key(i, i) in self.votes

    def __len__(self) -> int:
        return len(self.votes)


def first_exceeding(cumulative: np.ndarray, choice: float) -> int:
    """
    Candidate whose cumulative weight interval contains the draw.

    `cumulative` starts with 0 and has one more entry than there are
    candidates. Returns the first candidate k with cumulative[k + 1] > choice,
    scanning linearly. A draw at the very end falls back to the last
    candidate with a non-zero weight.
    """
    for k in range(1, len(cumulative)):
        if cumulative[k] > choice:
            return k - 1
    for k in range(len(cumulative) - 1, 0, -1):
        if cumulative[k] > cumulative[k - 1]:
            return k - 1
    return len(cumulative) - 2


def weighted_draw(weights: Sequence[float], rng: np.random.Generator) -> Tuple[Optional[int], np.ndarray]:
    """
    Weighted random choice over a small candidate list.

    Returns:
        index: Drawn candidate, or None when all weights are zero
        cumulative: Cumulative weights, starting with 0
    """
    cumulative = np.concatenate([[0.0], np.cumsum(np.asarray(weights, dtype=np.float64))])
    if not cumulative[-1] > 0:
        return None, cumulative
    choice = rng.random() * cumulative[-1]
    index = first_exceeding(cumulative, choice)
    assert 0 <= index < len(cumulative) - 1
    return index, cumulative


def choose_main(votes: PairVoteTable, filtered: Sequence[LabelledCamera],
                boost: float, rng: np.random.Generator) -> Tuple[Optional[CameraLabel], float]:
    """
    Choose a main camera by weighted random shot.

    Args:
        votes: Vote table of the current run
        filtered: Cameras that see the sampled point
        boost: Weight boost factor of cameras chosen as main before
        rng: Random stream

    Returns:
        label: Chosen camera, or None if no camera carries any weight
        weight_sum: Sum of the unboosted weights
    """
    assert len(filtered) > 0

    weight_sum = 0.0
    weights = []
    for label, _ in filtered:
        weight = label.cos_from_viewer / label.distance ** 2
        weight_sum += weight
        # if this main camera was selected earlier, boost its weight
        if votes.seen_as_main(label.index):
            weight += weight * boost * len(filtered)
        weights.append(weight)

    index, _ = weighted_draw(weights, rng)
    if index is None:
        return None, weight_sum
    return filtered[index].label, weight_sum


def choose_side(votes: PairVoteTable, main: CameraLabel, threshold: float, boost: float,
                filtered: Sequence[LabelledCamera], rng: np.random.Generator,
                focal: float = FOCAL) -> Optional[CameraLabel]:
    """
    Choose a side camera by weighted random shot and vote for the drawn pair.

    Args:
        votes: Vote table of the current run
        main: Main camera, one of the filtered cameras
        threshold: Number of (weight scaled) votes a pair needs
        boost: Weight boost factor of pairs that passed before
        filtered: Cameras that see the sampled point
        rng: Random stream
        focal: Focal length of the viewer

    Returns:
        The side camera if the drawn pair has just collected enough votes, else None
    """
    # main is among the filtered cameras and cannot be picked
    assert len(filtered) > 1
    assert threshold > 0

    labels = []
    weights = []
    actual_sum = 0.0
    for label, _ in filtered:
        if label.index == main.index:
            continue
        # parallax between the two cameras as seen from the point
        parallax_sqr = ((label.view_x - main.view_x) ** 2 + (label.view_y - main.view_y) ** 2) / focal
        weight = label.cos_from_viewer * parallax_sqr / label.distance ** 2
        actual_sum += weight

        # if this pair of cameras was chosen earlier, boost its weight
        if votes.passed(main.index, label.index):
            weight += weight * boost * len(filtered)
        weights.append(weight)
        labels.append(label)

    index, cumulative = weighted_draw(weights, rng)
    if index is None or not actual_sum > 0:
        return None

    side = labels[index]
    if votes.passed(main.index, side.index):
        # settled pairs are never emitted twice
        return None

    votes.mark_main(main.index)

    share = cumulative[index + 1] - cumulative[index]
    if votes.add_vote(main.index, side.index, share / (threshold * actual_sum)) >= 1:
        return side
    return None
