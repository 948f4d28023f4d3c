#!/usr/bin/env python3
"""
Session Demo: Document → Analysis → Interactive run

Shows the full workflow:
1. Build the example quiz document
2. Analyze it for authoring defects
3. Walk a session through it, printing every callback
"""

import logging

from branchlogic.analyzer import analyze_document
from branchlogic.examples import build_example_quiz
from branchlogic.navigation import NavigationController
from branchlogic.serialization import document_to_yaml
from branchlogic.settings import RuntimeSettings
from branchlogic.storage import InMemoryValueStore


class PrintingSink:
    def submit(self, submission):
        print(f"   → submitted {submission.to_dict()['answers']}")


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("SESSION DEMO: Document → Analysis → Run")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Build document
    # =========================================================================
    print("\n1. BUILDING DOCUMENT...")
    document = build_example_quiz()
    print(f"   ✓ Pages: {[p.id for p in document.pages]}")
    print(f"   ✓ Rules: {len(document.rules)}")
    print(document_to_yaml(document)[:400])

    # =========================================================================
    # STEP 2: Analyze
    # =========================================================================
    print("\n2. ANALYZING DOCUMENT...")
    report = analyze_document(document)
    print(f"   ✓ Blocks: {report.total_blocks}, actions: {report.total_actions}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 3: Run a session
    # =========================================================================
    print("\n3. RUNNING SESSION...")
    controller = NavigationController(
        document,
        settings=RuntimeSettings(persist_debounce=0),
        value_store=InMemoryValueStore(),
        submission_sink=PrintingSink(),
        on_page_change=lambda page: print(f"   page → {page.index} ({page.name})"),
        on_page_complete=lambda page: print(f"   completed {page.id} with {page.values}"),
        on_complete=lambda values, url: print(f"   ✓ done: {values}"),
    )
    controller.start()

    controller.set_value("experience", "intermediate")
    controller.next({"name": "Ada", "topics": ["python"]})
    for block in controller.resolved_blocks:
        print(f"   {block.type.value}: {block.properties.get('text')}")
    controller.next()
    controller.close()

    print("\n" + "=" * 80)
    print(f"FINAL STATE: {controller.state.value}, variables={controller.variables}")
    print("=" * 80)


if __name__ == "__main__":
    main()
