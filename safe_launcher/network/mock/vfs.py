import logging
import time
from collections.abc import Sequence
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NativeCode, NativeError
from .models import DirectoryDO, FileDO

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class VirtualFileSystem:
    """
    Directory tree of the mock vault, stored in the database.

    Methods only flush; the caller owns the transaction and commits once so
    that multi-step updates are applied atomically.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def flush(self, conflict: NativeCode) -> None:
        """Flush pending changes, reporting a name clash as conflict."""
        try:
            await self.db.flush()
        except IntegrityError as err:
            raise NativeError(conflict) from err

    async def get_directory(self, dir_id: int) -> Optional[DirectoryDO]:
        stmt = select(DirectoryDO).where(DirectoryDO.id == dir_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_child(self, parent_id: int, name: str) -> Optional[DirectoryDO]:
        stmt = select(DirectoryDO).where(
            DirectoryDO.parent_id == parent_id,
            DirectoryDO.name == name,
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_file(self, dir_id: int, name: str) -> Optional[FileDO]:
        stmt = select(FileDO).where(FileDO.directory_id == dir_id, FileDO.name == name)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def resolve_path(
        self, start_id: int, parts: Sequence[str]
    ) -> Optional[DirectoryDO]:
        """Walk down from start_id following the path segments."""
        node = await self.get_directory(start_id)
        for part in parts:
            if node is None:
                return None
            node = await self.get_child(node.id, part)
        return node

    async def create_directory(
        self,
        account_id: int,
        parent_id: Optional[int],
        name: str,
        metadata: str = "",
        is_private: bool = False,
    ) -> DirectoryDO:
        """Create a new directory."""
        now = now_ms()
        new_dir = DirectoryDO(
            account_id=account_id,
            parent_id=parent_id,
            name=name,
            user_metadata=metadata,
            is_private=is_private,
            is_versioned=False,
            created_on=now,
            modified_on=now,
        )
        self.db.add(new_dir)
        await self.flush(NativeCode.DIRECTORY_ALREADY_EXISTS)
        return new_dir

    async def ensure_directory_path(
        self,
        account_id: int,
        start_id: int,
        parts: Sequence[str],
        metadata: str,
        is_private: bool,
    ) -> DirectoryDO:
        """Create the leaf directory, creating missing parents on the way.

        The metadata and privacy flag only apply to the leaf.
        """
        if not parts:
            raise NativeError(NativeCode.INVALID_PATH)
        parent = await self.get_directory(start_id)
        if parent is None:
            raise NativeError(NativeCode.DIRECTORY_NOT_FOUND)
        for part in parts[:-1]:
            child = await self.get_child(parent.id, part)
            if child is None:
                child = await self.create_directory(account_id, parent.id, part)
            parent = child

        if await self.get_child(parent.id, parts[-1]) is not None:
            raise NativeError(NativeCode.DIRECTORY_ALREADY_EXISTS)
        return await self.create_directory(
            account_id, parent.id, parts[-1], metadata, is_private
        )

    async def list_children(
        self, dir_id: int
    ) -> tuple[list[DirectoryDO], list[FileDO]]:
        """List immediate sub directories and files, ordered by name."""
        dirs = await self.db.execute(
            select(DirectoryDO)
            .where(DirectoryDO.parent_id == dir_id)
            .order_by(DirectoryDO.name, DirectoryDO.id)
        )
        files = await self.db.execute(
            select(FileDO)
            .where(FileDO.directory_id == dir_id)
            .order_by(FileDO.name, FileDO.id)
        )
        return list(dirs.scalars().all()), list(files.scalars().all())

    async def is_ancestor(self, ancestor_id: int, node_id: int) -> bool:
        """Return True if ancestor_id is node_id or one of its parents."""
        curr_id: Optional[int] = node_id
        while curr_id is not None:
            if curr_id == ancestor_id:
                return True
            node = await self.get_directory(curr_id)
            if node is None:
                break
            curr_id = node.parent_id
        return False

    async def delete_tree(self, node: DirectoryDO) -> None:
        """Delete a directory, its files and all of its descendants."""
        dirs, _ = await self.list_children(node.id)
        for child in dirs:
            await self.delete_tree(child)
        await self.db.execute(delete(FileDO).where(FileDO.directory_id == node.id))
        await self.db.delete(node)
        await self.db.flush()

    async def copy_tree(self, node: DirectoryDO, parent_id: int) -> DirectoryDO:
        """Duplicate a directory subtree under a new parent."""
        copy = await self.create_directory(
            node.account_id,
            parent_id,
            node.name,
            node.user_metadata,
            node.is_private,
        )
        dirs, files = await self.list_children(node.id)
        now = now_ms()
        for item in files:
            self.db.add(
                FileDO(
                    directory_id=copy.id,
                    name=item.name,
                    user_metadata=item.user_metadata,
                    size=item.size,
                    content=item.content,
                    created_on=now,
                    modified_on=now,
                )
            )
        for child in dirs:
            await self.copy_tree(child, copy.id)
        await self.db.flush()
        return copy

    async def create_file(
        self, dir_id: int, name: str, metadata: str, content: bytes
    ) -> FileDO:
        """Create a file entry with its content."""
        if await self.get_file(dir_id, name) is not None:
            raise NativeError(NativeCode.FILE_ALREADY_EXISTS)
        now = now_ms()
        new_file = FileDO(
            directory_id=dir_id,
            name=name,
            user_metadata=metadata,
            size=len(content),
            content=content,
            created_on=now,
            modified_on=now,
        )
        self.db.add(new_file)
        await self.flush(NativeCode.FILE_ALREADY_EXISTS)
        return new_file
