from __future__ import annotations

from typing import List, Tuple

from ..nlp.schema import AppType
from .profile import PackageManager


UNKNOWN_START = "echo 'Unknown application type'"


def _js_commands(package_manager: PackageManager, with_build: bool) -> Tuple[List[str], List[str]]:
    if package_manager == PackageManager.YARN:
        build = ["yarn install"] + (["yarn build"] if with_build else [])
        return build, ["yarn start"]
    build = ["npm install"] + (["npm run build"] if with_build else [])
    return build, ["npm start"]


def generate_commands(
    app_type: AppType, package_manager: PackageManager, has_migrations: bool
) -> Tuple[List[str], List[str], bool]:
    """
    Map an application type and package manager to install/build and start commands.

    Returns:
        (build_commands, start_commands, requires_build). requires_build is
        true exactly when there is at least one build command.
    """
    build: List[str] = []
    start: List[str] = []

    if app_type == AppType.FLASK:
        build = ["pip install -r requirements.txt"]
        start = ["python app.py"]
    elif app_type == AppType.DJANGO:
        build = ["pip install -r requirements.txt"]
        if has_migrations:
            build.append("python manage.py migrate")
        start = ["python manage.py runserver 0.0.0.0:8000"]
    elif app_type == AppType.FASTAPI:
        build = ["pip install -r requirements.txt"]
        start = ["uvicorn main:app --host 0.0.0.0 --port 8000"]
    elif app_type in (AppType.NODEJS, AppType.EXPRESS):
        build, start = _js_commands(package_manager, with_build=False)
    elif app_type in (AppType.REACT, AppType.NEXTJS):
        build, start = _js_commands(package_manager, with_build=True)
    elif app_type == AppType.RAILS:
        build = ["bundle install"]
        if has_migrations:
            build.append("bundle exec rails db:migrate")
        start = ["bundle exec rails server -b 0.0.0.0"]
    elif app_type == AppType.SPRING:
        if package_manager == PackageManager.GRADLE:
            build = ["./gradlew build -x test"]
            start = ["java -jar build/libs/*.jar"]
        else:
            build = ["mvn -q package -DskipTests"]
            start = ["java -jar target/*.jar"]
    else:
        start = [UNKNOWN_START]

    return build, start, bool(build)
