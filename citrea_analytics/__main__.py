from citrea_analytics.main import run

run()
