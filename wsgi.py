from meetingai import create_app

app = create_app()
