from rtk_stories.interface.cli import app

app(prog_name="rtk-stories")
