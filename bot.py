import logging
from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    CallbackQueryHandler,
    ConversationHandler,
    ContextTypes,
    filters
)
from telegram.constants import ParseMode

from config import Config
from scolarite.services.api import API_ERRORS, get_setting, with_api
from scolarite.services.fetch import RemoteItem, ScreenState
from scolarite.services.loaders import (
    load_exam_detail, load_form_choices, load_grade_detail, load_grade_report,
    load_record, load_student_detail, load_subject_detail,
)
from scolarite.utils import bot_views as views
from scolarite.utils.excel_export import export_grades_to_excel
from scolarite.utils.filters import filter_grades
from scolarite.utils.forms import validate_create, validate_field, validate_update
from scolarite.utils.formatting import parse_date

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

FORM_INPUT, FORM_CONFIRM = range(2)

DETAIL_LOADERS = {
    'eleves': load_student_detail,
    'matieres': load_subject_detail,
    'examens': load_exam_detail,
    'notes': load_grade_detail,
}

WELCOME_TEXT = """
🎓 Bienvenue dans la gestion de la scolarité !

Consultez et modifiez les élèves, les matières, les examens et les notes.

Utilisez le menu ci-dessous ou les commandes :
/eleves - Élèves
/matieres - Matières
/examens - Examens
/notes - Notes
/help - Aide
"""

HELP_TEXT = """
📖 <b>Aide</b>

/eleves, /matieres, /examens, /notes - ouvrir une liste
/filtre &lt;texte&gt; - filtrer la liste ouverte par nom
/filtre - effacer le filtre
/export - recevoir les notes au format Excel
/cancel - annuler le formulaire en cours

Dans une liste, touchez un élément pour voir le détail, le modifier ou le supprimer.
"""


def get_config(context):
    return context.bot_data.get('config', Config)


def get_screen(context, kind):
    screens = context.chat_data.setdefault('screens', {})
    if kind not in screens:
        screens[kind] = views.ListScreen(kind, get_config(context))
    return screens[kind]


async def render(edit, view):
    text, markup = view
    await edit(text, reply_markup=markup, parse_mode=ParseMode.HTML)


async def load_list(edit, context, kind):
    """Run a fetch cycle for the list tab and draw it into ``edit``."""
    context.chat_data['current'] = kind
    screen = get_screen(context, kind)
    await render(edit, views.loading_view(kind))
    await screen.remote.load()
    await render(edit, views.list_view(screen))


async def load_detail(edit, context, kind, item_id):
    config = get_config(context)
    remote = RemoteItem(with_api(config, DETAIL_LOADERS[kind], item_id), views.DETAIL_ERRORS[kind])
    await render(edit, views.loading_view(kind))
    await remote.load()
    context.chat_data['detail'] = (kind, item_id, remote)
    await render(edit, views.detail_view(kind, remote, item_id, back_skip=get_screen(context, kind).skip))


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    logger.info(f"/start from {user.id if user else 'unknown'}")
    await update.message.reply_text(WELCOME_TEXT, reply_markup=views.main_menu_markup())

async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(HELP_TEXT, parse_mode=ParseMode.HTML)

async def show_list(update: Update, context: ContextTypes.DEFAULT_TYPE, kind) -> None:
    message = await update.message.reply_text(views.loading_view(kind)[0])
    await load_list(message.edit_text, context, kind)

def list_command(kind):
    async def handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await show_list(update, context, kind)
    return handler

async def filter_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    kind = context.chat_data.get('current', 'notes')
    screen = get_screen(context, kind)
    screen.text = ' '.join(context.args or [])

    if screen.remote.state == ScreenState.SUCCESS:
        # filtering is applied to the records already loaded
        await render(update.message.reply_text, views.list_view(screen))
    else:
        await show_list(update, context, kind)

async def export_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = await update.message.reply_text('⏳ Préparation de l’export…')
    try:
        summaries = await with_api(get_config(context), load_grade_report)()
    except API_ERRORS as e:
        logger.error(f"Failed to export grades: {e}")
        await message.edit_text("❌ Échec de l'export des notes")
        return

    text = get_screen(context, 'notes').text
    output = export_grades_to_excel(filter_grades(summaries, text))
    await update.message.reply_document(document=output, filename='notes.xlsx',
                                        caption=f'🎯 {len(summaries)} notes exportées')
    await message.delete()

async def delete_record(update: Update, context: ContextTypes.DEFAULT_TYPE, kind, item_id) -> None:
    query = update.callback_query
    try:
        await with_api(get_config(context), lambda api: api.resource(kind).delete(item_id))()
    except API_ERRORS as e:
        logger.error(f"Failed to delete {kind} {item_id}: {e}")
        await query.answer(f'❌ {views.DELETE_ERRORS[kind]}', show_alert=True)
        return

    logger.info(f"Deleted {kind} {item_id}")
    await query.answer(f'✅ {views.DELETED_MESSAGES[kind]}', show_alert=True)
    context.chat_data.pop('detail', None)
    await load_list(query.edit_message_text, context, kind)

async def button_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    data = query.data

    if data.startswith('delok:'):
        _, kind, item_id = data.split(':')
        return await delete_record(update, context, kind, int(item_id))

    await query.answer()

    if data == 'menu':
        await query.edit_message_text('🏠 Utilisez le menu ci-dessous pour choisir une liste.')

    elif data.startswith('list:'):
        _, kind, skip = data.split(':')
        get_screen(context, kind).skip = max(int(skip), 0)
        await load_list(query.edit_message_text, context, kind)

    elif data.startswith('refresh:'):
        kind = data.split(':')[1]
        await load_list(query.edit_message_text, context, kind)

    elif data.startswith('class:'):
        screen = get_screen(context, 'eleves')
        level = data.split(':', 1)[1]
        if level == screen.level:
            return
        screen.level = level
        if screen.remote.state == ScreenState.SUCCESS:
            await render(query.edit_message_text, views.list_view(screen))
        else:
            await load_list(query.edit_message_text, context, 'eleves')

    elif data.startswith('show:'):
        _, kind, item_id = data.split(':')
        await load_detail(query.edit_message_text, context, kind, int(item_id))

    elif data.startswith('del:'):
        _, kind, item_id = data.split(':')
        await render(query.edit_message_text, views.delete_confirm_view(kind, int(item_id)))

async def form_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    action, kind, *rest = query.data.split(':')
    config = get_config(context)

    session = views.FormSession(kind, mode=action)
    if action == 'edit':
        session.item_id = int(rest[0])
        remote = RemoteItem(with_api(config, load_record, kind, session.item_id), views.DETAIL_ERRORS[kind])
        await remote.load()
        if not remote.loaded:
            await render(query.edit_message_text, views.error_view(remote.error, f'show:{kind}:{session.item_id}'))
            return ConversationHandler.END
        remote.begin_edit()
        session.screen = remote
        session.current = remote.data.model_dump()

    try:
        session.choices = await with_api(config, load_form_choices, kind,
                                         class_options=get_setting(config, 'CLASS_OPTIONS', []))()
    except API_ERRORS as e:
        logger.error(f"Failed to load form choices for {kind}: {e}")
        await render(query.edit_message_text, views.error_view('Échec du chargement des données', query.data))
        return ConversationHandler.END

    context.chat_data['form'] = session
    await render(query.edit_message_text, views.field_prompt_view(session))
    return FORM_INPUT

async def next_field(edit, session) -> int:
    session.next_field()
    if session.finished:
        await render(edit, views.form_summary_view(session))
        return FORM_CONFIRM
    await render(edit, views.field_prompt_view(session))
    return FORM_INPUT

async def form_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    session = context.chat_data.get('form')
    if session is None:
        return ConversationHandler.END

    form_field = session.field
    text = update.message.text
    if form_field.picker:
        text, error = session.match_option(form_field, text)
        if error:
            await render(update.message.reply_text, views.field_prompt_view(session, error))
            return FORM_INPUT

    value, error = validate_field(session.kind, form_field.name, text)
    if error:
        await render(update.message.reply_text, views.field_prompt_view(session, error))
        return FORM_INPUT

    session.set_value(form_field.name, value)
    return await next_field(update.message.reply_text, session)

async def form_pick(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    session = context.chat_data.get('form')
    if session is None:
        return ConversationHandler.END

    if query.data == 'keep':
        return await next_field(query.edit_message_text, session)

    action, number = query.data.split(':')
    if action == 'page':
        session.go_to_page(int(number))
        await render(query.edit_message_text, views.field_prompt_view(session))
        return FORM_INPUT

    form_field = session.field
    options = session.options(form_field)
    position = int(number)
    if not form_field.picker or position >= len(options):
        return FORM_INPUT

    value, error = validate_field(session.kind, form_field.name, options[position][0])
    if error:
        await render(query.edit_message_text, views.field_prompt_view(session, error))
        return FORM_INPUT

    session.set_value(form_field.name, value)
    return await next_field(query.edit_message_text, session)

def form_payload(session):
    if session.mode == 'create':
        return validate_create(session.kind, session.values)

    names = [form_field.name for form_field in session.fields]
    if session.kind == 'notes':
        names.append('matiere_id')
    data = {}
    for name in names:
        value = session.values.get(name, session.current.get(name))
        if name == 'date' and isinstance(value, str):
            value = parse_date(value)
        if value is not None:
            data[name] = value
    return validate_update(session.kind, data)

async def form_submit(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    session = context.chat_data.get('form')
    if session is None:
        await query.answer()
        return ConversationHandler.END

    payload, errors = form_payload(session)
    if errors:
        await query.answer()
        await render(query.edit_message_text, views.form_summary_view(session, next(iter(errors.values()))))
        return FORM_CONFIRM

    config = get_config(context)
    error_message = views.SUBMIT_ERRORS[(session.kind, session.mode)]
    resource = session.kind

    if session.mode == 'create':
        try:
            await with_api(config, lambda api: api.resource(resource).create(payload))()
        except API_ERRORS as e:
            logger.error(f"Failed to create {resource}: {e}")
            await query.answer()
            await render(query.edit_message_text, views.form_summary_view(session, error_message))
            return FORM_CONFIRM
    else:
        item_id = session.item_id
        saved = await session.screen.submit(
            with_api(config, lambda api: api.resource(resource).update(item_id, payload)),
            error_message)
        if not saved:
            await query.answer()
            await render(query.edit_message_text, views.form_summary_view(session, session.screen.error))
            return FORM_CONFIRM

    context.chat_data.pop('form', None)
    await query.answer(f'✅ {views.SAVED_MESSAGES[(session.kind, session.mode)]}', show_alert=True)
    if session.mode == 'create':
        await load_list(query.edit_message_text, context, session.kind)
    else:
        await load_detail(query.edit_message_text, context, session.kind, session.item_id)
    return ConversationHandler.END

async def form_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    session = context.chat_data.pop('form', None)

    if session is not None and session.mode == 'edit':
        if session.screen.state == ScreenState.EDITING:
            session.screen.cancel_edit()
        await load_detail(query.edit_message_text, context, session.kind, session.item_id)
    elif session is not None:
        await load_list(query.edit_message_text, context, session.kind)
    else:
        await query.edit_message_text('Formulaire annulé ✅')
    return ConversationHandler.END

async def cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    context.chat_data.pop('form', None)
    await update.message.reply_text(
        "Opération annulée ✅\n\nUtilisez /start pour revenir au menu principal"
    )
    return ConversationHandler.END

async def text_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    text = update.message.text

    if text in views.MENU_BUTTONS:
        return await show_list(update, context, views.MENU_BUTTONS[text])
    elif text == "ℹ️ Aide":
        return await help_command(update, context)
    else:
        await update.message.reply_text(
            "Désolé, je n'ai pas compris.\n\n"
            "Utilisez /help pour voir les commandes disponibles"
        )

async def error_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error(f"Exception while handling an update: {context.error}")

    try:
        if isinstance(update, Update) and update.effective_message:
            await update.effective_message.reply_text(
                "❌ Désolé, une erreur inattendue s'est produite.\n\n"
                "Veuillez réessayer ou utiliser /start"
            )
    except Exception as e:
        logger.error(f"Error in error handler: {e}")

def build_application(config=Config):
    application = Application.builder().token(config.TELEGRAM_BOT_TOKEN).concurrent_updates(True).build()
    application.bot_data['config'] = config

    form_handler = ConversationHandler(
        entry_points=[CallbackQueryHandler(form_start, pattern=r'^(create|edit):')],
        states={
            FORM_INPUT: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, form_text),
                CallbackQueryHandler(form_pick, pattern=r'^(pick:\d+|page:\d+|keep)$'),
            ],
            FORM_CONFIRM: [CallbackQueryHandler(form_submit, pattern=r'^form:submit$')],
        },
        fallbacks=[
            CallbackQueryHandler(form_cancel, pattern=r'^form:cancel$'),
            CommandHandler('cancel', cancel),
        ],
        allow_reentry=True,
    )

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(form_handler)
    for kind in views.KINDS:
        application.add_handler(CommandHandler(kind, list_command(kind)))
    application.add_handler(CommandHandler("filtre", filter_command))
    application.add_handler(CommandHandler("export", export_command))

    application.add_handler(CallbackQueryHandler(button_callback))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, text_handler))

    application.add_error_handler(error_handler)
    return application

def main() -> None:
    if not Config.TELEGRAM_BOT_TOKEN:
        logger.error("Telegram bot token not configured!")
        return

    if not Config.TELEGRAM_BOT_ENABLED:
        logger.info("Telegram bot is disabled in settings")
        return

    application = build_application(Config)

    logger.info(f"Bot started successfully! API at {Config.API_URL}")
    application.run_polling(allowed_updates=Update.ALL_TYPES)

if __name__ == '__main__':
    main()
