"""
Goldbook — Double-click this file to start.
Opens your browser automatically.
"""
import subprocess
import sys
import os

REQUIRED = ('flask', 'reportlab', 'openpyxl')

def missing_packages():
    missing = []
    for name in REQUIRED:
        try:
            __import__(name)
        except ImportError:
            missing.append(name)
    return missing

def install(packages):
    print(f"First-time setup: installing {', '.join(packages)}...")
    subprocess.check_call([sys.executable, '-m', 'pip', 'install', *packages, '-q'])
    print("Done!\n")

def main():
    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    missing = missing_packages()
    if missing:
        install(missing)

    from app import main as run_app
    run_app()

if __name__ == '__main__':
    main()
