"""Tests covering turn resolution, outcome classification and scoring."""

from __future__ import annotations

import random
from typing import Sequence

import pytest

from hundredone import policy, rules
from hundredone.actions import DrawAndPlay, InvalidAction, PlayFromHand
from hundredone.cards import Card, Rank, Suit
from hundredone.events import EventRecorder, EventType
from hundredone.rules import Bust, JokerWin, OutcomeKind
from hundredone.state import Deck, Player, RoundState, TurnPhase, deal_new_round


def _c(rank: Rank, suit: Suit = Suit.SPADES) -> Card:
    return Card(rank, None if rank is Rank.JOKER else suit)


def _filler(count: int) -> list[Card]:
    return [Card(Rank.TWO, Suit.CLUBS)] * count


def _table(
    hands: Sequence[Sequence[Card]],
    *,
    total: int = 0,
    current: int = 0,
    previous: int | None = None,
    flow_count: int = 0,
    deck_cards: Sequence[Card] = (),
    discard: Sequence[Card] = (),
) -> tuple[list[Player], Deck, RoundState]:
    players = [Player(name=f"P{idx}", hand=list(hand)) for idx, hand in enumerate(hands)]
    deck = Deck(list(deck_cards), random.Random(0))
    round_state = RoundState(
        current_index=current,
        total=total,
        previous_index=previous,
        flow_count=flow_count,
        discard=list(discard),
    )
    return players, deck, round_state


def test_bust_when_total_exceeds_threshold() -> None:
    players, deck, round_state = _table([[_c(Rank.SEVEN)], []], total=95, previous=1, deck_cards=_filler(4))

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=7))

    assert result.kind == OutcomeKind.BUST
    assert result.outcome == Bust(loser=0)
    assert result.total_after == 102
    assert round_state.phase == TurnPhase.ROUND_ENDED
    assert round_state.outcome == Bust(loser=0)
    assert [player.score for player in players] == [-1, 0]
    assert result.score_changes == (rules.ScoreChange(player_index=0, delta=-1, score=-1),)


def test_flow_resets_total_and_continues() -> None:
    players, deck, round_state = _table([[_c(Rank.TEN)], []], total=91, deck_cards=_filler(4))

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=10))

    assert result.kind == OutcomeKind.FLOW
    assert result.outcome is None
    assert round_state.flow_count == 1
    assert round_state.total == 0
    assert result.total_after == 0
    assert not round_state.is_over
    assert round_state.current_index == 1
    assert round_state.previous_index == 0
    assert [player.score for player in players] == [0, 0]


def test_joker_win_after_kings_reach_pivot() -> None:
    p0 = [_c(Rank.KING), _c(Rank.KING), _c(Rank.JOKER)]
    p1 = [_c(Rank.KING), _c(Rank.JACK)]
    players, deck, round_state = _table([p0, p1], deck_cards=_filler(8))

    plays = [
        PlayFromHand(card_index=0, addition=30),
        PlayFromHand(card_index=0, addition=30),
        PlayFromHand(card_index=0, addition=30),
        PlayFromHand(card_index=0, addition=10),
    ]
    for action in plays:
        result = rules.play_turn(round_state, players, deck, action)
        assert result.kind == OutcomeKind.NORMAL

    assert round_state.total == 100
    assert round_state.current_index == 0
    assert round_state.previous_index == 1
    assert players[0].hand[0].is_joker

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=50))

    assert result.kind == OutcomeKind.JOKER_WIN
    assert result.outcome == JokerWin(winner=0, loser=1)
    assert round_state.total == 100
    assert result.total_after == 100
    assert [player.score for player in players] == [1, -1]


@pytest.mark.parametrize(
    ("total", "expected_kind", "expected_total"),
    [
        (60, OutcomeKind.BUST, 110),
        (51, OutcomeKind.FLOW, 0),
        (30, OutcomeKind.NORMAL, 80),
        (99, OutcomeKind.BUST, 149),
    ],
)
def test_joker_off_pivot_plays_as_fifty(total: int, expected_kind: OutcomeKind, expected_total: int) -> None:
    players, deck, round_state = _table([[_c(Rank.JOKER)], []], total=total, previous=1, deck_cards=_filler(4))

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=50))

    assert result.kind == expected_kind
    assert result.total_after == expected_total


@pytest.mark.parametrize("flows", [0, 1, 2, 5])
def test_flow_escalates_bust_penalty(flows: int) -> None:
    players, deck, round_state = _table(
        [[_c(Rank.KING)], []], total=80, previous=1, flow_count=flows, deck_cards=_filler(4)
    )

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=30))

    assert players[0].score == -(flows + 1)
    assert players[1].score == 0


@pytest.mark.parametrize("flows", [0, 1, 3])
def test_flow_escalates_joker_transfer(flows: int) -> None:
    players, deck, round_state = _table(
        [[], [_c(Rank.JOKER)], []],
        total=100,
        current=1,
        previous=2,
        flow_count=flows,
        deck_cards=_filler(4),
    )

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=50))

    assert [player.score for player in players] == [0, flows + 1, -(flows + 1)]


def test_flows_counted_across_turns_raise_the_stake() -> None:
    hands = [[_c(Rank.TEN), _c(Rank.KING)], [_c(Rank.TEN)]]
    players, deck, round_state = _table(hands, total=91, deck_cards=[_c(Rank.QUEEN)] * 6)

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=10))
    round_state.total = 91
    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=10))
    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=30))

    assert round_state.flow_count == 2
    assert result.kind == OutcomeKind.NORMAL
    round_state.total = 95
    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=20))
    assert result.kind == OutcomeKind.BUST
    assert players[1].score == -3


def test_nine_reverses_direction_from_current_player() -> None:
    hands = [[_c(Rank.TWO)], [_c(Rank.NINE)], [_c(Rank.THREE)]]
    players, deck, round_state = _table(hands, total=40, current=1, previous=0, deck_cards=_filler(8))

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=0))

    assert round_state.direction == -1
    assert result.direction == -1
    assert round_state.total == 40
    assert result.effective_addition == 0
    assert round_state.current_index == 0
    assert round_state.previous_index == 1

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=2))

    assert round_state.current_index == 2
    assert round_state.total == 42


def test_second_nine_restores_direction() -> None:
    hands = [[_c(Rank.NINE)], [_c(Rank.NINE)]]
    players, deck, round_state = _table(hands, total=10, deck_cards=_filler(4))

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=0))
    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=0))

    assert round_state.direction == 1
    assert round_state.total == 10


def test_eight_adds_nothing_and_keeps_direction() -> None:
    players, deck, round_state = _table([[_c(Rank.EIGHT)], []], total=100, previous=1, deck_cards=_filler(4))

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=0))

    assert result.kind == OutcomeKind.NORMAL
    assert round_state.total == 100
    assert round_state.direction == 1


def test_negative_ten_lowers_total_below_zero() -> None:
    players, deck, round_state = _table([[_c(Rank.TEN)], []], total=5, deck_cards=_filler(4))

    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=-10))

    assert round_state.total == -5


def test_play_from_hand_discards_and_draws_replacement() -> None:
    queen = _c(Rank.QUEEN)
    replacement = _c(Rank.FOUR)
    players, deck, round_state = _table([[queen, _c(Rank.ACE)], []], deck_cards=[replacement])

    result = rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=20))

    assert result.card == queen
    assert not result.drew_from_deck
    assert round_state.discard == [queen]
    assert players[0].hand == [_c(Rank.ACE), replacement]
    assert len(deck) == 0


def test_draw_and_play_uses_chooser_and_keeps_hand() -> None:
    ace = _c(Rank.ACE)
    hand = [_c(Rank.KING)]
    players, deck, round_state = _table([hand, []], total=50, deck_cards=[ace])
    asked: list[tuple[Card, int]] = []

    def chooser(card: Card, total: int) -> int:
        asked.append((card, total))
        return 11

    result = rules.play_turn(round_state, players, deck, DrawAndPlay(), choose_addition=chooser)

    assert asked == [(ace, 50)]
    assert result.drew_from_deck
    assert result.card == ace
    assert round_state.total == 61
    assert players[0].hand == [_c(Rank.KING)]
    assert round_state.discard == [ace]


def test_draw_and_play_defaults_to_automatic_addition() -> None:
    players, deck, round_state = _table([[], []], total=95, deck_cards=[_c(Rank.TEN)])

    result = rules.play_turn(round_state, players, deck, DrawAndPlay())

    assert result.addition == -10
    assert round_state.total == 85


def test_draw_and_play_rejects_illegal_chosen_addition() -> None:
    ace = _c(Rank.ACE)
    players, deck, round_state = _table([[], []], total=50, deck_cards=[ace])

    with pytest.raises(InvalidAction):
        rules.play_turn(round_state, players, deck, DrawAndPlay(), choose_addition=lambda card, total: 7)

    assert deck.cards == [ace]
    assert round_state.total == 50
    assert round_state.phase == TurnPhase.AWAITING_ACTION


def test_rejected_draw_restores_recycled_discard() -> None:
    recorder = EventRecorder()
    discard = [_c(Rank.ACE), _c(Rank.ACE, Suit.HEARTS)]
    players, deck, round_state = _table([[], []], total=50, discard=discard)

    with pytest.raises(InvalidAction):
        rules.play_turn(
            round_state,
            players,
            deck,
            DrawAndPlay(),
            choose_addition=lambda card, total: 7,
            report_event=recorder,
        )

    assert round_state.discard == discard
    assert deck.cards == []
    assert deck.reshuffle_count == 0
    assert recorder.events == []


def test_chooser_error_returns_drawn_card_to_deck() -> None:
    ace = _c(Rank.ACE)
    players, deck, round_state = _table([[_c(Rank.FIVE)], []], total=50, deck_cards=[ace])

    def hang_up(card: Card, total: int) -> int:
        raise EOFError

    with pytest.raises(EOFError):
        rules.play_turn(round_state, players, deck, DrawAndPlay(), choose_addition=hang_up)

    assert deck.cards == [ace]
    assert players[0].hand == [_c(Rank.FIVE)]
    assert len(deck) + len(round_state.discard) + len(players[0].hand) == 2
    assert round_state.phase == TurnPhase.AWAITING_ACTION
    assert round_state.total == 50


def test_empty_deck_falls_back_to_first_hand_card() -> None:
    queen = _c(Rank.QUEEN)
    players, deck, round_state = _table([[queen, _c(Rank.KING)], []], total=10)

    result = rules.play_turn(round_state, players, deck, DrawAndPlay())

    assert result.card == queen
    assert result.addition == 20
    assert not result.drew_from_deck
    assert round_state.total == 30
    # the replacement draw recycles the card that was just discarded
    assert players[0].hand == [_c(Rank.KING), queen]
    assert round_state.discard == []
    assert deck.reshuffle_count == 1


def test_empty_deck_fallback_uses_given_automatic_addition() -> None:
    players, deck, round_state = _table([[_c(Rank.TEN)], []], total=40)
    asked: list[tuple[Card, int]] = []

    def always_minus(card: Card, total: int) -> int:
        asked.append((card, total))
        return -10

    result = rules.play_turn(round_state, players, deck, DrawAndPlay(), automatic_addition=always_minus)

    assert asked == [(_c(Rank.TEN), 40)]
    assert result.addition == -10
    assert round_state.total == 30


def test_empty_deck_and_hand_skips_turn() -> None:
    recorder = EventRecorder()
    players, deck, round_state = _table([[], [_c(Rank.TWO)]], total=33)

    result = rules.play_turn(round_state, players, deck, DrawAndPlay(), report_event=recorder)

    assert result.kind == OutcomeKind.SKIPPED
    assert result.card is None
    assert round_state.total == 33
    assert round_state.current_index == 1
    assert round_state.previous_index is None
    assert round_state.turn_index == 1
    assert round_state.phase == TurnPhase.AWAITING_ACTION
    assert [event.event_type for event in recorder.events] == [EventType.TURN_SKIPPED]


def test_draw_recycles_discard_and_reports_reshuffle() -> None:
    recorder = EventRecorder()
    discard = [_c(Rank.TWO), _c(Rank.THREE), _c(Rank.FOUR)]
    players, deck, round_state = _table([[], []], total=10, discard=discard)

    result = rules.play_turn(round_state, players, deck, DrawAndPlay(), report_event=recorder)

    assert result.drew_from_deck
    assert len(deck) == 2
    assert round_state.discard == [result.card]
    reshuffles = recorder.of_type(EventType.DECK_RESHUFFLED)
    assert len(reshuffles) == 1
    assert reshuffles[0].data["size"] == 3


@pytest.mark.parametrize(
    "action",
    [
        PlayFromHand(card_index=3, addition=5),
        PlayFromHand(card_index=0, addition=6),
    ],
)
def test_invalid_action_leaves_state_untouched(action: PlayFromHand) -> None:
    hand = [_c(Rank.FIVE)]
    players, deck, round_state = _table([hand, []], total=20, deck_cards=_filler(4))

    with pytest.raises(InvalidAction):
        rules.play_turn(round_state, players, deck, action)

    assert players[0].hand == [_c(Rank.FIVE)]
    assert round_state.total == 20
    assert round_state.discard == []
    assert round_state.phase == TurnPhase.AWAITING_ACTION


def test_turn_after_round_end_is_rejected() -> None:
    players, deck, round_state = _table([[_c(Rank.KING), _c(Rank.KING)], []], total=90, previous=1)
    rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=30))

    with pytest.raises(rules.RoundAlreadyOver):
        rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=30))


def test_joker_win_without_previous_actor_is_an_invariant_error() -> None:
    joker = _c(Rank.JOKER)
    players, deck, round_state = _table([[joker], []], total=100, previous=None, deck_cards=_filler(2))

    with pytest.raises(rules.RoundInvariantError):
        rules.play_turn(round_state, players, deck, PlayFromHand(card_index=0, addition=50))

    assert players[0].hand == [joker]
    assert round_state.discard == []
    assert round_state.phase == TurnPhase.AWAITING_ACTION


def test_drawn_joker_without_previous_actor_goes_back_to_deck() -> None:
    joker = _c(Rank.JOKER)
    players, deck, round_state = _table([[], []], total=100, previous=None, deck_cards=[joker])

    with pytest.raises(rules.RoundInvariantError):
        rules.play_turn(round_state, players, deck, DrawAndPlay())

    assert deck.cards == [joker]
    assert round_state.phase == TurnPhase.AWAITING_ACTION


def test_bust_turn_reports_events_in_order() -> None:
    recorder = EventRecorder()
    players, deck, round_state = _table([[_c(Rank.SEVEN)], []], total=95, previous=1, deck_cards=_filler(4))

    rules.play_turn(
        round_state,
        players,
        deck,
        PlayFromHand(card_index=0, addition=7),
        report_event=recorder,
        round_number=4,
    )

    assert [event.event_type for event in recorder.events] == [
        EventType.CARD_PLAYED,
        EventType.BUST,
        EventType.SCORE_CHANGED,
    ]
    assert all(event.round_number == 4 for event in recorder.events)
    assert recorder.events[-1].data == {"delta": -1, "score": -1}


@pytest.mark.parametrize(
    ("rank", "total", "effective", "expected"),
    [
        (Rank.JOKER, 100, 50, OutcomeKind.JOKER_WIN),
        (Rank.JOKER, 60, 50, OutcomeKind.BUST),
        (Rank.SEVEN, 95, 7, OutcomeKind.BUST),
        (Rank.TEN, 91, 10, OutcomeKind.FLOW),
        (Rank.EIGHT, 101, 0, OutcomeKind.FLOW),
        (Rank.FIVE, 10, 5, OutcomeKind.NORMAL),
    ],
)
def test_classify(rank: Rank, total: int, effective: int, expected: OutcomeKind) -> None:
    assert rules.classify(_c(rank), total, effective) == expected


@pytest.mark.parametrize(
    ("index", "direction", "count", "expected"),
    [
        (0, 1, 3, 1),
        (2, 1, 3, 0),
        (0, -1, 3, 2),
        (1, -1, 3, 0),
        (0, 1, 1, 0),
        (0, -1, 1, 0),
    ],
)
def test_next_player_index_wraps(index: int, direction: int, count: int, expected: int) -> None:
    assert rules.next_player_index(index, direction, count) == expected


def test_next_player_index_requires_players() -> None:
    with pytest.raises(ValueError):
        rules.next_player_index(0, 1, 0)


def test_apply_outcome_never_clamps() -> None:
    players = [Player(name="A", score=-4), Player(name="B", score=7)]

    rules.apply_outcome(players, Bust(loser=0), flow_count=3)
    rules.apply_outcome(players, JokerWin(winner=1, loser=0), flow_count=0)

    assert [player.score for player in players] == [-9, 8]


@pytest.mark.parametrize(("flows", "penalty"), [(0, 1), (1, 2), (4, 5)])
def test_penalty_for(flows: int, penalty: int) -> None:
    assert rules.penalty_for(flows) == penalty


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_cpu_round_conserves_cards(seed: int) -> None:
    rng = random.Random(seed)
    players = [Player(name=f"CPU{idx}") for idx in range(3)]
    deck, round_state = deal_new_round(players, rng=rng)

    turns = 0
    while not round_state.is_over and turns < 2000:
        player = players[round_state.current_index]
        action = policy.decide(player.hand, round_state.total, not deck.is_empty)
        rules.play_turn(round_state, players, deck, action)
        in_hands = sum(len(p.hand) for p in players)
        assert len(deck) + len(round_state.discard) + in_hands == 54
        turns += 1

    assert round_state.is_over
    assert sum(player.score for player in players) in (-(round_state.flow_count + 1), 0)
