"""Prompt templates, one per intent.

Every template pins the model to the same pseudo key/value layout that
`parser.parse_response` reads back:

    ACTION: <Create Project|Create Task|Update Project|Update Task|Delete Project|Delete Task>
    TITLE: ...
    DESCRIPTION: ...
    SEARCH: ...
    TASKS:
    - <title> | <description>
    STATUS: ...
    ASSIGN TO: ...
"""

from __future__ import annotations

from .intent import UserIntent

_CLOSING = "Return ONLY the formatted response. No explanations, no markdown."

_CREATE_PROJECT = """\
TASK: Extract and generate project information from the user input to create a new project.

USER INPUT: "{user_text}"

IMPORTANT: Generate meaningful content. If the user gives only a name, write a
short, concrete description yourself. Never leave TITLE or DESCRIPTION empty.

Extract and generate:
- Project title (from the user input)
- Project description (generate one from the title/context if not provided)

If the user also mentions tasks, use "ACTION: Create Project, Create Task" and
add a TASKS section with one line per task, generating a description for each.

Examples:
- "Create a mobile app project" -> describe mobile app development
- "Create e-commerce project with shopping cart and payment" -> project plus two tasks

RESPONSE FORMAT:
ACTION: Create Project
TITLE: <project title>
DESCRIPTION: <project description>

RESPONSE FORMAT WITH TASKS:
ACTION: Create Project, Create Task
TITLE: <project title>
DESCRIPTION: <project description>
TASKS:
- <task title> | <task description>

{closing}"""

_CREATE_TASK = """\
TASK: Extract task information and the project name from the user input.
The system will search the database for the project.

USER INPUT: "{user_text}"

IMPORTANT:
- Put the project name exactly as the user wrote it in SEARCH.
- Generate a meaningful description for every task the user did not describe.

Examples:
- "Create task for website project: Design homepage" -> SEARCH: website, one task about homepage design
- "Add login task to mobile app project" -> SEARCH: mobile app, one task about login

RESPONSE FORMAT:
ACTION: Create Task
SEARCH: <project name from user input>
TASKS:
- <task title> | <task description>

For several tasks, repeat the task line:
TASKS:
- <task 1 title> | <task 1 description>
- <task 2 title> | <task 2 description>

{closing}"""

_UPDATE_PROJECT = """\
TASK: Extract project update information from the user input.
The system will search the database for the existing project.

USER INPUT: "{user_text}"

Extract:
- The existing project name (what to search for)
- The new title, only if the user wants to rename it
- The new description, only if the user wants to change it

Examples:
- "Update the project Social Media Project to Test Project" -> SEARCH: Social Media Project, TITLE: Test Project
- "Change website project description to Online store" -> SEARCH: website, DESCRIPTION: Online store

RESPONSE FORMAT:
ACTION: Update Project
SEARCH: <existing project name>
TITLE: <new title, or leave empty>
DESCRIPTION: <new description, or leave empty>

{closing}"""

_UPDATE_TASK = """\
TASK: Extract task update information from the user input.
The system will search the database for the existing task.

USER INPUT: "{user_text}"

Extract:
- The existing task name (what to search for)
- The new title, description, status ("to-do", "in-progress", "blocked", "done")
  and assignee, only where the user asks to change them

Examples:
- "Rename task Design UI to Design Homepage" -> SEARCH: Design UI, TITLE: Design Homepage
- "Change API Development task status to in-progress" -> SEARCH: API Development, STATUS: in-progress

RESPONSE FORMAT:
ACTION: Update Task
SEARCH: <existing task name>
TITLE: <new title, or leave empty>
DESCRIPTION: <new description, or leave empty>
STATUS: <new status, or leave empty>
ASSIGN TO: <assignee, or leave empty>

{closing}"""

_DELETE_PROJECT = """\
TASK: Extract the name of the project the user wants to delete.
The system will search the database and delete it.

USER INPUT: "{user_text}"

Only extract the project name and place it in SEARCH. Do not invent a name.

Examples:
- "Delete the project called Social Media" -> SEARCH: Social Media
- "Remove website project" -> SEARCH: website

RESPONSE FORMAT:
ACTION: Delete Project
SEARCH: <project name>

{closing}"""

_DELETE_TASK = """\
TASK: Extract the name of the task the user wants to delete.
The system will search the database and delete it.

USER INPUT: "{user_text}"

Only extract the task name and place it in SEARCH. Do not invent a name.

Examples:
- "Delete the task Design UI" -> SEARCH: Design UI
- "Remove my login task" -> SEARCH: login

RESPONSE FORMAT:
ACTION: Delete Task
SEARCH: <task name>

{closing}"""

TEMPLATES: dict[UserIntent, str] = {
    UserIntent.CREATE_PROJECT: _CREATE_PROJECT,
    UserIntent.CREATE_TASK: _CREATE_TASK,
    UserIntent.UPDATE_PROJECT: _UPDATE_PROJECT,
    UserIntent.UPDATE_TASK: _UPDATE_TASK,
    UserIntent.DELETE_PROJECT: _DELETE_PROJECT,
    UserIntent.DELETE_TASK: _DELETE_TASK,
}


def build_prompt(intent: UserIntent, user_text: str) -> str:
    """Render the prompt for `intent`.

    Raises:
        ValueError: for `UserIntent.UNKNOWN`; callers must stop before prompting.
    """
    template = TEMPLATES.get(intent)
    if template is None:
        raise ValueError(f"No prompt template for intent {intent.value!r}")
    # Quotes in the user's text would end the USER INPUT literal early.
    quoted = user_text.strip().replace('"', "'")
    return template.format(user_text=quoted, closing=_CLOSING)
