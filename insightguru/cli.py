import argparse
import asyncio
import logging

from rich.console import Console
from rich.prompt import Prompt

from insightguru.config import settings
from insightguru.db.sqlite import close_storage, init_storage
from insightguru.services import identity
from insightguru.services.chat_service import ChatController
from insightguru.services.session_ref import SessionReference
from insightguru.render import render_message, sessions_table

HELP = (
    "Commands: /new  /open SID  /sessions  /toggle N  /link  /help  /quit\n"
    "Anything else is sent as a question."
)


def _show(console: Console, chat: ChatController) -> None:
    console.clear()
    title = chat.session_name or ("New chat" if not chat.session_id else chat.session_id)
    console.rule(f"{title} · {chat.context.dataset_name or chat.context.dataset_id or 'no dataset'}")
    for i, message in enumerate(chat.messages, start=1):
        console.print(render_message(message, i, settings.preview_row_limit))
    for notice in chat.notices.active:
        console.print(f"[red]{notice.title}[/red]: {notice.description}")
        chat.notices.dismiss(notice.id)


async def _handle(console: Console, chat: ChatController, line: str) -> bool:
    command, _, arg = line.strip().partition(" ")
    arg = arg.strip()
    if command in ("/quit", "/exit"):
        return False
    if command == "/help":
        console.print(HELP)
    elif command == "/new":
        await chat.start_new_session()
    elif command == "/open":
        await chat.open_session(SessionReference.parse_sid(arg) or arg)
    elif command == "/sessions":
        await chat.roster.refresh()
        console.print(sessions_table(chat.roster.sessions, chat.session_id))
        if chat.roster.error:
            console.print(f"[red]{chat.roster.error}[/red]")
        return True
    elif command == "/toggle":
        if arg.isdigit() and 0 < int(arg) <= len(chat.messages):
            chat.toggle(chat.messages[int(arg) - 1].id)
    elif command == "/link":
        console.print(chat.share_link)
        return True
    else:
        with console.status("Processing your query..."):
            await chat.submit(line)
    _show(console, chat)
    return True


async def run(args: argparse.Namespace) -> None:
    console = Console()
    await init_storage(settings.storage_dsn)
    try:
        context = await identity.load_context()
        if args.dataset:
            context = await identity.set_dataset(context, args.dataset, args.dataset_name or "")

        reference = SessionReference(settings.app_url)
        sid = SessionReference.parse_sid(args.link) if args.link else args.sid
        if not sid and not args.fresh and not args.dataset:
            sid = await reference.restore()

        chat = ChatController(context, settings, session_id=sid or "")
        chat.seed(args.ask or "", args.schema_sheet or "")
        await chat.start()
        _show(console, chat)
        console.print(HELP)

        while True:
            line = await asyncio.to_thread(Prompt.ask, "[bold]Ask anything[/bold]", default=chat.draft, show_default=False)
            if not line.strip():
                continue
            if not await _handle(console, chat, line):
                break
        await chat.close()
    finally:
        await close_storage()


def main() -> None:
    parser = argparse.ArgumentParser(description="Ask questions about an uploaded dataset")
    parser.add_argument("--dataset", help="Dataset id issued by the upload endpoint")
    parser.add_argument("--dataset-name", help="Display name of the dataset")
    parser.add_argument("--sid", help="Open this session id")
    parser.add_argument("--link", help="Open the session in a shared chat link")
    parser.add_argument("--fresh", action="store_true", help="Start without resuming the last session")
    parser.add_argument("--ask", help="Pre-fill the composer with a question")
    parser.add_argument("--schema-sheet", help="Schema hint sent along with questions")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        filename=settings.log_file or None,
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass