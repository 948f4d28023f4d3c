"""
Example document builder.

Builds a small scored quiz:
    intro   -> single-choice "experience" question; beginners jump to "basics"
    details -> free-text name + multi-choice topics (expert path)
    basics  -> loader shown to beginners
    result  -> heading that greets the user by name and shows the score

Every answer to "experience" adds to the "score" variable.
"""
from branchlogic.conditions import (
    Always,
    Comparison,
    ComparisonOperator,
    Operand,
    OperandType,
)
from branchlogic.model import (
    Action,
    ActionDetails,
    ActionType,
    Block,
    BlockType,
    Document,
    DocumentKind,
    Page,
    PageProperties,
    Reference,
    Rule,
)


def _choice(block_id: str, name: str, options, multiple: bool = False, **validations) -> Block:
    return Block(
        id=block_id,
        type=BlockType.MULTIPLE_CHOICE,
        properties={
            "name": name,
            "multiple": multiple,
            "options": [{"id": o, "label": o.title()} for o in options],
        },
        validations={"required": True, **validations},
    )


def build_example_quiz(document_id: str = "quiz-example", redirect_url: str = None) -> Document:
    intro = Page(
        id="intro",
        name="Experience",
        blocks=[
            Block(id="intro-heading", type=BlockType.HEADING, properties={"text": "How experienced are you?"}),
            _choice("experience", "Experience", ["beginner", "intermediate", "expert"]),
        ],
    )
    details = Page(
        id="details",
        name="Details",
        blocks=[
            Block(
                id="name",
                type=BlockType.TEXT_INPUT,
                properties={"name": "Your name", "placeholder": "Jane"},
                validations={"required": True, "minLength": 2, "maxLength": 40},
            ),
            _choice("topics", "Topics", ["python", "rust", "go"], multiple=True, maxChoices=2),
        ],
    )
    basics = Page(
        id="basics",
        name="Basics",
        blocks=[
            Block(id="basics-loader", type=BlockType.LOADER, properties={"description": "Preparing your plan", "duration": 2}),
        ],
    )
    result = Page(
        id="result",
        name="Result",
        blocks=[
            Block(id="result-heading", type=BlockType.HEADING, properties={"text": "Thanks {{block:name}}!"}),
            Block(id="result-score", type=BlockType.PARAGRAPH, properties={"text": "Your score: {{var:score}}"}),
        ],
        properties=PageProperties(button_text="Finish", redirect_url=redirect_url),
    )

    def answered(value: str) -> Comparison:
        return Comparison(
            operator=ComparisonOperator.EQUALS,
            left=Operand(OperandType.BLOCK, "experience"),
            right=Operand(OperandType.CONSTANT, value),
        )

    intro_rule = Rule(
        page_id="intro",
        actions=[
            Action(
                type=ActionType.JUMP,
                condition=answered("beginner"),
                details=ActionDetails(to=Reference("page", "basics")),
            ),
            Action(
                type=ActionType.ADD,
                condition=Always(),
                details=ActionDetails(target=Reference("variable", "score"), value=Reference("constant", 1)),
            ),
            Action(
                type=ActionType.MULTIPLY,
                condition=answered("expert"),
                details=ActionDetails(target=Reference("variable", "score"), value=Reference("constant", 10)),
            ),
        ],
    )
    details_rule = Rule(
        page_id="details",
        actions=[
            Action(
                type=ActionType.JUMP,
                condition=Always(),
                details=ActionDetails(to=Reference("page", "result")),
            ),
        ],
    )

    return Document(
        id=document_id,
        kind=DocumentKind.QUIZ,
        pages=[intro, details, basics, result],
        rules=[intro_rule, details_rule],
        variables={"score": 0},
    )
