from classrep import create_app, start_lifecycle_clock
from dotenv import load_dotenv
load_dotenv()

application = create_app()
start_lifecycle_clock(application)

if __name__ == "__main__":
    application.run()
