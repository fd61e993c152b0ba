import logging
from app.database import SessionLocal
from app.models.company import CompanySettings

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Ensures the CompanySettings singleton exists.
    Leave submission reads its auto-approval knobs on every request.
    """
    db = SessionLocal()
    try:
        existing = db.query(CompanySettings).count()
        if existing == 0:
            logger.info("Running startup initialization...")
            db.add(CompanySettings(
                company_name="",
                auto_approve_enabled=True,
                auto_approve_sick_threshold=3,
                auto_approve_personal_threshold=1,
                default_sick_days=10,
                default_vacation_days=15,
            ))
            db.commit()
            logger.info("✓ Created default company settings")
        else:
            logger.info(f"System initialization check: {existing} company settings row(s) found.")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()

def create_admin_user(db, email: str, password: str, full_name: str = "System Administrator"):
    """Create the first admin account. Returns None if the email is already taken."""
    from app.models.user import User, UserRole
    from app.services.auth import get_password_hash

    if db.query(User).filter(User.email == email).first():
        logger.warning(f"User '{email}' already exists.")
        return None

    admin = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin user '{email}' created.")
    return admin
