from shortlinks.main import run

run()
