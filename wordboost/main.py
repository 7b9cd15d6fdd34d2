"""
WordBoost Console Client - Main Entry Point.
Runs a practice session in the terminal over a YAML word list.
"""
import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from .core.config import PracticeConfig, load_config
from .engines.card import CardFace, PromptSide
from .engines.pairing import PairingCard, SelectOutcome
from .integrations import ConsoleSpeech, InMemoryWordStore
from .modes.practice_session import PhaseKind, PracticeSession

logger = logging.getLogger(__name__)

DRILL_HELP = "[f]lip  [k]now  [d]on't know  [s]peak  [u]ndo  [q]uit"
PAIRING_HELP = "card number to select  [u]ndo  [q]uit"


class ConsoleClient:
    """
    Terminal front end for a practice session.

    Pairing: type the number of a card to select it.
    Drill: flip the card, then grade it.
    """

    def __init__(self, words_path: str, config: Dict[str, Any]):
        self.config = config
        self.store = InMemoryWordStore.from_yaml(words_path)
        self.speech = ConsoleSpeech()
        self.session = PracticeSession(
            source=self.store,
            persistence=self.store,
            speech=self.speech,
            config=PracticeConfig.from_dict(config),
        )
        self.running = False

    async def _read_line(self, prompt: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, input, prompt)
        except EOFError:
            return None

    async def run(self):
        logger.info(f"Starting practice over {len(self.store.all_words())} words")
        await self.session.start_or_refresh_session()
        self.running = True
        try:
            while self.running:
                self.render()
                line = await self._read_line("> ")
                if line is None:
                    break
                await self.handle(line.strip().lower())
        finally:
            await self.session.close()

    # Rendering

    def render(self):
        session = self.session
        phase = session.phase

        if session.error_message:
            print(f"! {session.error_message}")
            session.clear_error_message()

        if phase.kind == PhaseKind.LOADING:
            print("Loading words...")
        elif phase.kind == PhaseKind.EMPTY:
            print("Nothing to practice right now. [q]uit")
        elif phase.kind == PhaseKind.FINISHED:
            print(f"Done! {phase.processed_count} words practiced. [u]ndo  [q]uit")
        elif phase.kind == PhaseKind.ERROR:
            print(f"Error: {phase.message}. [q]uit")
        elif phase.kind == PhaseKind.BATCH_PAIRING:
            self._render_pairing()
        elif phase.kind == PhaseKind.BATCH_REGULAR:
            self._render_card()

    def _render_pairing(self):
        pairing = self.session.pairing_round
        print("\n-- Match the pairs --")
        if pairing is None:
            return
        for number, card in enumerate(pairing.cards, start=1):
            print(f"{number:>2}. {self._card_label(card, pairing.selected)}")
        print(PAIRING_HELP)

    @staticmethod
    def _card_label(card: PairingCard, selected: Optional[PairingCard]) -> str:
        if card.matched:
            return f"✓ {card.text}"
        if card.mismatched:
            return f"✗ {card.text}"
        if card is selected:
            return f"* {card.text}"
        return f"  {card.text}"

    def _render_card(self):
        session = self.session
        word = session.current_word
        if word is None:
            return
        position = f"[{session.current_index + 1}/{len(session.current_batch)}]"
        card = session.card
        if card.prompt_side == PromptSide.ORIGINAL:
            prompt, answer = word.text, word.translation
        else:
            prompt, answer = word.translation, word.text

        print(f"\n{position} {prompt}")
        if card.face == CardFace.ANSWER:
            print(f"    -> {answer}   ({word.status.value}, {int(word.progress * 100)}%)")
        print(DRILL_HELP)

    # Commands

    async def handle(self, command: str):
        session = self.session

        if command in ("q", "quit"):
            self.running = False
        elif command == "u":
            await session.undo_last_action()
        elif session.phase.kind == PhaseKind.BATCH_PAIRING and command.isdigit():
            await self._select_card(int(command))
        elif session.phase.kind == PhaseKind.BATCH_REGULAR:
            await self._drill_command(command)
        elif command:
            print("?")

    async def _select_card(self, number: int):
        pairing = self.session.pairing_round
        if pairing is None or not 1 <= number <= len(pairing.cards):
            print("No such card")
            return
        outcome = await pairing.select(pairing.cards[number - 1].id)
        if outcome == SelectOutcome.MISMATCHED:
            print("Not a pair")
        if outcome in (SelectOutcome.MATCHED, SelectOutcome.MISMATCHED):
            # Let cool-down or round completion run before redrawing
            await pairing.drain()

    async def _drill_command(self, command: str):
        session = self.session
        if command == "f":
            session.flip_card()
        elif command == "k":
            if not await session.on_card_swiped_right():
                print("Flip the card first")
        elif command == "d":
            if not await session.on_card_swiped_left():
                print("Flip the card first")
        elif command == "s":
            word = session.current_word
            if word is not None:
                session.speak_translation_text(word.translation)
        elif command:
            print("?")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="WordBoost practice session")
    parser.add_argument(
        "words",
        help="YAML file with the words to practice"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)
    config = load_config(args.config)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else config["logging"]["level"],
        format=config["logging"]["format"]
    )

    client = ConsoleClient(args.words, config)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nSession interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
