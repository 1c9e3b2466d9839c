#!/usr/bin/env python3
"""Wire a localized InfoPlist.strings into the Runner Xcode project.

This script performs the following steps:
1) Resolve the Runner group under the project's main group
2) Find or create the InfoPlist.strings variant group inside it
3) Ensure one <locale>.lproj/InfoPlist.strings reference per locale
4) Register the variant group in the Runner target's Resources build phase
5) Optionally add the locales to knownRegions and create missing .strings files
6) Save project.pbxproj

Re-running is safe: existing groups, references and build files are reused.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pbxproj import XcodeProject
from pbxproj.PBXGenericObject import PBXGenericObject
from pbxproj.pbxsections import PBXBuildFile, PBXFileReference, PBXResourcesBuildPhase

PROJECT_PATH = "ios/Runner.xcodeproj"
GROUP_NAME = "Runner"
VARIANT_GROUP_NAME = "InfoPlist.strings"
LOCALES = ["en", "zh-Hans", "ar"]
TARGET_NAME = "Runner"

GROUP_SOURCE_TREE = "<group>"
STRINGS_FILE_TYPE = "text.plist.strings"
BUILD_ACTION_MASK = 2147483647


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Add a localized InfoPlist.strings to an Xcode project.")
    parser.add_argument("--project", default=PROJECT_PATH, help=f"Xcode project path (default: {PROJECT_PATH})")
    parser.add_argument("--group", default=GROUP_NAME, help=f"Group holding the variant group (default: {GROUP_NAME})")
    parser.add_argument("--target", default=TARGET_NAME, help=f"Target to register the resource in (default: {TARGET_NAME})")
    parser.add_argument(
        "--locale",
        action="append",
        dest="locales",
        help=f"Locale to wire, repeatable (default: {','.join(LOCALES)})",
    )
    parser.add_argument("--known-regions", action="store_true", help="Also add the locales to knownRegions")
    parser.add_argument("--write-strings", action="store_true", help="Create missing .strings files on disk")
    parser.add_argument("--dry-run", action="store_true", help="Apply changes in memory only, do not save")
    return parser.parse_args(argv)


def normalize_language_code(code: str) -> str:
    return code.replace("_", "-")


def pbxproj_path(project_path: str) -> Path:
    path = Path(project_path)
    if path.suffix == ".xcodeproj":
        return path / "project.pbxproj"
    return path


def display_name(obj) -> Optional[str]:
    name = getattr(obj, "name", None)
    if name:
        return str(name)
    path = getattr(obj, "path", None)
    if path:
        return os.path.basename(str(path))
    return None


def main_group(project: XcodeProject):
    root = project.get_object(project.rootObject)
    return project.get_object(root.mainGroup)


def children_of(project: XcodeProject, group) -> List:
    children = []
    for child_id in getattr(group, "children", None) or []:
        child = project.get_object(child_id)
        if child is not None:
            children.append(child)
    return children


def group_chain(project: XcodeProject, group, subpath: str) -> Optional[List]:
    """Return the groups visited while following `subpath` from `group`, or None.

    Segments are separated by "/" and matched against the display name of
    each child group, so a group declared only by `path = Runner;` is found.
    """
    chain = []
    current = group
    for segment in [part for part in subpath.split("/") if part]:
        current = next(
            (child for child in children_of(project, current) if child.isa == "PBXGroup" and display_name(child) == segment),
            None,
        )
        if current is None:
            return None
        chain.append(current)
    return chain


def find_subpath(project: XcodeProject, group, subpath: str):
    chain = group_chain(project, group, subpath)
    if chain is None:
        return None
    return chain[-1] if chain else group


def group_folder(project: XcodeProject, group, subpath: str) -> Path:
    """Folder of the group at `subpath`, relative to the project source root.

    Groups without a `path` (name-only groups) add no directory level.
    """
    folder = Path()
    for member in group_chain(project, group, subpath) or []:
        path = getattr(member, "path", None)
        if path:
            folder = folder / str(path)
    return folder


def ensure_variant_group(project: XcodeProject, group, name: str) -> Tuple[PBXGenericObject, bool]:
    for child in children_of(project, group):
        if child.isa == "PBXVariantGroup" and getattr(child, "name", None) == name:
            return child, False

    # pbxproj has no variant group class; it loads them as generic objects too.
    variant_group = PBXGenericObject().parse({
        "_id": PBXGenericObject._generate_id(),
        "isa": "PBXVariantGroup",
        "children": [],
        "name": name,
        "sourceTree": GROUP_SOURCE_TREE,
    })
    project.objects[variant_group.get_id()] = variant_group
    group.children.append(variant_group.get_id())
    return variant_group, True


def ensure_locale_reference(
    project: XcodeProject, variant_group, locale: str, filename: str
) -> Tuple[PBXFileReference, bool]:
    file_path = f"{locale}.lproj/{filename}"
    for child in children_of(project, variant_group):
        if getattr(child, "path", None) == file_path:
            return child, False

    reference = PBXFileReference.create(file_path, tree=GROUP_SOURCE_TREE)
    reference.name = locale
    reference.lastKnownFileType = STRINGS_FILE_TYPE
    project.objects[reference.get_id()] = reference
    variant_group.children.append(reference.get_id())
    return reference, True


def find_target(project: XcodeProject, name: str):
    for target in project.objects.get_targets():
        if target.name == name:
            return target
    return None


def resources_build_phase(project: XcodeProject, target) -> PBXResourcesBuildPhase:
    for phase_id in target.buildPhases:
        phase = project.get_object(phase_id)
        if phase is not None and phase.isa == "PBXResourcesBuildPhase":
            return phase

    phase = PBXResourcesBuildPhase().parse({
        "_id": PBXResourcesBuildPhase._generate_id(),
        "isa": "PBXResourcesBuildPhase",
        "buildActionMask": BUILD_ACTION_MASK,
        "files": [],
        "runOnlyForDeploymentPostprocessing": 0,
    })
    project.objects[phase.get_id()] = phase
    target.buildPhases.append(phase.get_id())
    return phase


def ensure_build_file(project: XcodeProject, phase, file_ref) -> Tuple[PBXBuildFile, bool]:
    # Match on the referenced object id, not on path.
    for build_file_id in phase.files:
        build_file = project.get_object(build_file_id)
        if build_file is not None and getattr(build_file, "fileRef", None) == file_ref.get_id():
            return build_file, False

    build_file = PBXBuildFile.create(file_ref)
    project.objects[build_file.get_id()] = build_file
    phase.add_build_file(build_file)
    return build_file, True


def ensure_known_regions(project: XcodeProject, locales: Sequence[str]) -> List[str]:
    root = project.get_object(project.rootObject)
    regions = getattr(root, "knownRegions", None)
    if regions is None:
        raise RuntimeError("Could not locate knownRegions in project.pbxproj")

    added: List[str] = []
    for locale in locales:
        if locale in regions:
            continue
        # Keep Base last when present.
        if "Base" in regions:
            regions.insert(regions.index("Base"), locale)
        else:
            regions.append(locale)
        added.append(locale)
    return added


def write_strings_files(
    group_dir: Path, locales: Sequence[str], filename: str, dry_run: bool = False
) -> List[Path]:
    """Create missing <locale>.lproj/<filename> files under `group_dir`.

    Existing files are left untouched. With `dry_run` nothing is written and
    the paths that would be created are returned.
    """
    created: List[Path] = []
    for locale in locales:
        out_file = group_dir / f"{locale}.lproj" / filename
        if out_file.exists():
            continue
        if not dry_run:
            out_file.parent.mkdir(parents=True, exist_ok=True)
            out_file.write_text(f"/* {filename} ({locale}) */\n", encoding="utf-8")
        created.append(out_file)
    return created


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    locales = [normalize_language_code(code) for code in (args.locales or LOCALES)]

    pbx = pbxproj_path(args.project)
    project = XcodeProject.load(str(pbx))

    group = find_subpath(project, main_group(project), args.group)
    if group is None:
        print(f"{args.group} group not found!")
        return 1

    variant_group, _ = ensure_variant_group(project, group, VARIANT_GROUP_NAME)

    for locale in locales:
        _, created = ensure_locale_reference(project, variant_group, locale, VARIANT_GROUP_NAME)
        if created:
            print(f"Added {locale} to {VARIANT_GROUP_NAME}")
        else:
            print(f"{locale} already exists in {VARIANT_GROUP_NAME}")

    target = find_target(project, args.target)
    if target is not None:
        phase = resources_build_phase(project, target)
        _, created = ensure_build_file(project, phase, variant_group)
        if created:
            print(f"Added {VARIANT_GROUP_NAME} to Resources build phase")
        else:
            print(f"{VARIANT_GROUP_NAME} already in Resources build phase")

    if args.known_regions:
        try:
            added = ensure_known_regions(project, locales)
        except RuntimeError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        print(f"Added to knownRegions: {', '.join(added) if added else 'already present'}")

    if args.write_strings:
        group_dir = pbx.resolve().parent.parent / group_folder(project, main_group(project), args.group)
        for path in write_strings_files(group_dir, locales, VARIANT_GROUP_NAME, dry_run=args.dry_run):
            print(f"{'Would create' if args.dry_run else 'Created'} {path}")

    if args.dry_run:
        print("Dry-run complete. No project files were modified.")
        return 0

    project.save()
    print("Successfully updated Xcode project.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
