"""Interactive CLI application."""
import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from fluentquest.db import init_db, DEFAULT_DB_PATH
from fluentquest.errors import ProgressionError, UnauthorizedError
from fluentquest.seed import seed_all
from fluentquest.users import create_user, get_user, get_user_by_username, complete_onboarding
from fluentquest.lessons import list_lessons, get_lesson, complete_lesson, score_lesson_quiz
from fluentquest.quests import get_user_quests, claim_quest, update_quest_progress
from fluentquest.quiz import get_daily_quiz, submit_daily_quiz
from fluentquest.dashboard import get_user_stats, get_level_color
from fluentquest.review import get_weak_lessons, get_next_lesson
from fluentquest.settings import SKILL_LEVELS, LANGUAGES

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user leaves a lesson or quiz part way through."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    answer = session_prompt(prompt, choices=choices + list(EXIT_WORDS), show_choices=False)
    return int(answer)


def setup_logging() -> None:
    level = os.environ.get("FLUENTQUEST_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "WARNING"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def require_user(user_id: int | None) -> int:
    if user_id is None:
        raise UnauthorizedError("Sign in first with 'login'")
    return user_id


def show_welcome():
    console.print(Panel(
        "[bold]FluentQuest[/bold]\n[dim]Lessons, quests and a daily quiz[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("login", "Sign in or create an account"),
        ("onboarding", "Set skill level and goals"),
        ("lessons", "Browse and take lessons"),
        ("quests", "Quest board"),
        ("claim", "Claim a completed quest"),
        ("progress", "Report quest progress"),
        ("daily", "Today's daily quiz"),
        ("dashboard", "XP and progress"),
        ("review", "Lessons worth retrying"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_questions(questions: list[dict]) -> list[int]:
    answers = []
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] {q['question']}\n")
        for j, option in enumerate(q["options"]):
            console.print(f"  [cyan]{j})[/cyan] {option}")
        answers.append(session_int_prompt("\nYour answer", [str(j) for j in range(len(q["options"]))]))
        console.print()
    return answers


def cmd_login(db_path: str) -> int:
    username = Prompt.ask("Username").strip()
    user = get_user_by_username(db_path, username)
    if user is None:
        user = create_user(db_path, username)
        console.print(f"[green]Account created for {user.username}.[/green]")
    else:
        console.print(f"[green]Welcome back, {user.display_name or user.username}![/green]")
    return user.id


def cmd_onboarding(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    skill = Prompt.ask("Skill level", choices=list(SKILL_LEVELS), default="beginner")
    language = Prompt.ask("Target language", choices=list(LANGUAGES), default="en")
    minutes = IntPrompt.ask("Daily minutes", choices=["5", "10", "15", "20", "25", "30"], default=10)
    user = complete_onboarding(db_path, user_id, skill, language, minutes)
    console.print(f"[green]All set: {user.skill_level} {LANGUAGES[user.target_language]}.[/green]")


def run_lesson(db_path: str, user_id: int, lesson_id: int) -> None:
    lesson = get_lesson(db_path, lesson_id)
    console.print(Panel(lesson.content, title=lesson.title, border_style="cyan"))
    answers = []
    if lesson.quiz_config:
        console.print("\n[bold]Lesson Quiz[/bold]\n")
        answers = ask_questions([q.to_dict(include_answer=False) for q in lesson.quiz_config])
    else:
        Prompt.ask("[dim]Press Enter when done reading[/dim]")
    score = score_lesson_quiz(lesson, answers)
    progress = complete_lesson(db_path, user_id, lesson.id, score, answers or None)
    console.print(f"[bold]Score: {score}%[/bold] (best {progress.score}%)")


def cmd_lessons(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    lessons = list_lessons(db_path)
    table = Table(title="Lessons")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Level")
    for lesson in lessons:
        table.add_row(str(lesson.id), lesson.title, lesson.difficulty)
    console.print(table)
    if not lessons:
        console.print("[yellow]No lessons available![/yellow]")
        return
    nxt = get_next_lesson(db_path, user_id)
    default = str(nxt["id"]) if nxt else str(lessons[0].id)
    choice = Prompt.ask("Lesson to take", choices=[str(l.id) for l in lessons], default=default)
    run_lesson(db_path, user_id, int(choice))


def cmd_quests(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    table = Table(title="Quests")
    table.add_column("#", justify="right")
    table.add_column("Quest", style="cyan")
    table.add_column("Type")
    table.add_column("Progress", justify="right")
    table.add_column("Reward", justify="right")
    table.add_column("Status")
    for q in get_user_quests(db_path, user_id):
        status = {
            "CLAIMED": "[dim]Claimed[/dim]",
            "COMPLETED": "[green]Ready to claim[/green]",
            "IN_PROGRESS": "[yellow]In progress[/yellow]",
        }.get(q["state"], "")
        table.add_row(
            str(q["quest_id"]), q["description"], q["type"],
            f"{min(q['progress'], q['target_count'])}/{q['target_count']}",
            f"{q['reward_xp']} XP", status,
        )
    console.print(table)


def cmd_claim(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    quest_id = IntPrompt.ask("Quest number")
    claim_quest(db_path, user_id, quest_id)
    console.print(f"[green]Reward claimed! You now have {get_user(db_path, user_id).xp} XP.[/green]")


def cmd_progress(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    quest_id = IntPrompt.ask("Quest number")
    count = IntPrompt.ask("Progress count")
    user_quest = update_quest_progress(db_path, user_id, quest_id, count)
    console.print(f"[green]Progress recorded: {user_quest.progress}.[/green]")


def cmd_daily(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    view = get_daily_quiz(db_path, user_id)
    quiz = view["quiz"]
    if view["completed"]:
        console.print(Panel(f"Completed with [bold]{view['score']}%[/bold]", title=quiz["title"]))
        for i, (q, given) in enumerate(zip(quiz["questions"], view["user_answers"] or []), 1):
            mark = "[green]✓[/green]" if given == q["correct_index"] else "[red]✗[/red]"
            console.print(f"{mark} Q{i}. {q['question']} [dim]→ {q['options'][q['correct_index']]}[/dim]")
        return
    console.print(Panel(
        f"{len(quiz['questions'])} questions, {quiz['reward_xp']} XP",
        title=quiz["title"], border_style="blue",
    ))
    answers = ask_questions(quiz["questions"])
    result = submit_daily_quiz(db_path, user_id, quiz["id"], answers)
    console.print(f"[bold]Score: {result['score']}%[/bold]  [green]+{result['xp_awarded']} XP[/green]")


def cmd_dashboard(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    stats = get_user_stats(db_path, user_id)
    color = get_level_color(stats["xp"])
    console.print(Panel(
        f"[bold]{stats['xp']} XP[/bold]  [{color}]{stats['level']}[/{color}]  "
        f"Streak: [bold]{stats['streak']}[/bold]",
        title="Progress", border_style="blue",
    ))
    console.print(f"\n  Lessons: [bold]{stats['lessons_completed']}[/bold] "
                  f"(avg {stats['avg_lesson_score']}%)  |  "
                  f"Quests claimed: [bold]{stats['quests_claimed']}[/bold]  |  "
                  f"Daily quizzes: [bold]{stats['daily_quizzes_taken']}[/bold] "
                  f"(avg {stats['avg_daily_quiz_score']}%)")


def cmd_review(db_path: str, user_id: int | None):
    user_id = require_user(user_id)
    weak = get_weak_lessons(db_path, user_id)
    if not weak:
        console.print("[green]No weak lessons detected! Keep up the good work.[/green]")
        return
    table = Table(title="Lessons to Retry")
    table.add_column("#", justify="right")
    table.add_column("Lesson")
    table.add_column("Best Score", justify="right")
    for w in weak:
        table.add_row(str(w["lesson_id"]), w["title"], f"{w['score']}%")
    console.print(table)
    run_lesson(db_path, user_id, weak[0]["lesson_id"])


def main():
    setup_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    seed_all(db_path)
    show_welcome()

    user_id = None
    commands = {
        "onboarding": cmd_onboarding,
        "lessons": cmd_lessons,
        "quests": cmd_quests,
        "claim": cmd_claim,
        "progress": cmd_progress,
        "daily": cmd_daily,
        "dashboard": cmd_dashboard,
        "review": cmd_review,
    }
    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="daily" if user_id else "login").strip().lower()
        try:
            if choice == "login":
                user_id = cmd_login(db_path)
            elif choice in commands:
                commands[choice](db_path, user_id)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Left the session. Nothing was recorded.[/dim]")
        except ProgressionError as e:
            console.print(f"[red]{e.message}[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
