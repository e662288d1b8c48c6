from opsync import create_app

app = create_app()
