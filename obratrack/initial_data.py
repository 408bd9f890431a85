# obratrack/initial_data.py

import logging
from sqlalchemy.orm import Session
from obratrack.database import SessionLocal, init_db
from obratrack.crud.stage_template import create_stage_template, get_ordered_templates
from obratrack.core.settings import settings
from obratrack.core.exceptions import ValidationError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("ObraTrack.InitialData")

def create_default_stage_templates(db: Session) -> int:
    """
    Заполняет глобальный набор шаблонов этапов, если он пуст.
    Возвращает число созданных шаблонов.
    """
    logger.info("Checking if default stage templates need to be created...")
    if get_ordered_templates(db):
        logger.info("Stage templates already exist. No action taken.")
        return 0

    created = 0
    for order_number, name in enumerate(settings.DEFAULT_STAGE_TEMPLATES, start=1):
        try:
            create_stage_template(db, {"name": name, "order_number": order_number})
            created += 1
        except ValidationError as e:
            logger.error(f"Failed to create stage template '{name}': {e}")
    logger.info(f"Created {created} default stage templates.")
    return created

def main() -> None:
    logger.info("Initializing initial data (stage templates)...")
    init_db()
    db = SessionLocal()
    try:
        create_default_stage_templates(db)
    finally:
        db.close()
    logger.info("Finished initial data setup.")

if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()

    main()
